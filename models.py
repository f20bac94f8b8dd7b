"""Core data models for the speech session."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence, Union

AutoStopCallback = Callable[[str], None]


class SessionStatus(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    UNSUPPORTED = "UNSUPPORTED"
    READY = "READY"
    LISTENING = "LISTENING"


class CapabilityEventKind(str, Enum):
    START = "start"
    RESULT = "result"
    ERROR = "error"
    END = "end"


def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float
    is_final: bool
    observed_at: _dt.datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class RawAlternative:
    text: str
    confidence: float = 0.0


@dataclass(frozen=True)
class RawResult:
    alternatives: Sequence[RawAlternative]
    is_final: bool = False


@dataclass
class CapabilityEvent:
    kind: str
    result_index: int = 0
    results: Sequence[RawResult] = ()
    code: str = ""
    message: str = ""


@dataclass(frozen=True)
class EnvironmentInfo:
    name: str
    reason: str


@dataclass(frozen=True)
class ErrorInfo:
    code: str
    message: str
    kind: str
    environment_info: Optional[EnvironmentInfo] = None


@dataclass(frozen=True)
class CapabilityProbe:
    supported: bool
    environment_name: str
    reason: str


@dataclass(frozen=True)
class EnvironmentDescriptor:
    """What the host tells us about itself.

    ``identity`` is a user-agent style string, ``None`` when there is no
    hosting environment at all. ``constructors`` maps vendor constructor
    names to zero-argument capability factories.
    """

    identity: Optional[str]
    privacy_restricted: bool = False
    constructors: Mapping[str, Callable[[], Any]] = field(default_factory=dict)


@dataclass
class AutoStopOptions:
    enabled: bool = False
    silence_duration_ms: int = 3000
    on_auto_stop: Optional[AutoStopCallback] = None

    def __post_init__(self) -> None:
        if not _is_int(self.silence_duration_ms) or self.silence_duration_ms < 0:
            raise ValueError(f"silence_duration_ms must be an int >= 0, got {self.silence_duration_ms!r}")
        if self.on_auto_stop is not None and not callable(self.on_auto_stop):
            raise ValueError(f"on_auto_stop must be callable, got {self.on_auto_stop!r}")


@dataclass
class Options:
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 1
    language: str = "en-US"
    auto_stop_on_silence: AutoStopOptions = field(default_factory=AutoStopOptions)

    def __post_init__(self) -> None:
        if isinstance(self.auto_stop_on_silence, Mapping):
            self.auto_stop_on_silence = _merge_auto_stop(AutoStopOptions(), self.auto_stop_on_silence)
        if not isinstance(self.auto_stop_on_silence, AutoStopOptions):
            raise ValueError(
                f"auto_stop_on_silence must be a mapping or AutoStopOptions, got {self.auto_stop_on_silence!r}"
            )
        if not _is_int(self.max_alternatives) or self.max_alternatives < 1:
            raise ValueError(f"max_alternatives must be an int >= 1, got {self.max_alternatives!r}")
        if not isinstance(self.language, str):
            raise ValueError(f"language must be a string, got {self.language!r}")

    def merged(self, overrides: Union["Options", Mapping[str, Any], None]) -> "Options":
        """Return a copy with ``overrides`` applied; missing fields keep their values.

        Raises ``ValueError`` for unknown keys and for values of the wrong type.
        """
        if overrides is None:
            return replace(self, auto_stop_on_silence=replace(self.auto_stop_on_silence))
        if isinstance(overrides, Options):
            return replace(overrides, auto_stop_on_silence=replace(overrides.auto_stop_on_silence))
        if not isinstance(overrides, Mapping):
            raise ValueError(f"options must be a mapping or Options, got {overrides!r}")

        known = {f.name for f in fields(Options)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"unknown option(s): {', '.join(sorted(map(str, unknown)))}")

        values = {k: v for k, v in overrides.items() if k != "auto_stop_on_silence"}
        auto_stop = self.auto_stop_on_silence
        if "auto_stop_on_silence" in overrides:
            patch = overrides["auto_stop_on_silence"]
            if isinstance(patch, AutoStopOptions):
                auto_stop = patch
            else:
                auto_stop = _merge_auto_stop(auto_stop, patch if patch is not None else {})
        return replace(self, auto_stop_on_silence=replace(auto_stop), **values)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _merge_auto_stop(base: AutoStopOptions, patch: Mapping[str, Any]) -> AutoStopOptions:
    if not isinstance(patch, Mapping):
        raise ValueError(f"auto_stop_on_silence must be a mapping or AutoStopOptions, got {patch!r}")
    known = {f.name for f in fields(AutoStopOptions)}
    unknown = set(patch) - known
    if unknown:
        raise ValueError(f"unknown auto_stop_on_silence option(s): {', '.join(sorted(map(str, unknown)))}")
    return replace(base, **patch)


@dataclass
class Session:
    status: SessionStatus = SessionStatus.UNINITIALIZED
    supported: bool = False
    initializing: bool = True
    final_transcript: str = ""
    interim_transcript: str = ""
    combined_transcript: str = ""
    results: list = field(default_factory=list)
    error: Optional[ErrorInfo] = None

    def clear_transcript(self) -> None:
        self.final_transcript = ""
        self.interim_transcript = ""
        self.combined_transcript = ""
        self.results = []


@dataclass(frozen=True)
class SessionSnapshot:
    status: SessionStatus
    is_listening: bool
    is_supported: bool
    is_initializing: bool
    transcript: str
    interim_transcript: str
    final_transcript: str
    results: tuple
    error: Optional[ErrorInfo]


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0
