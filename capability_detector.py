"""Decide whether the host offers a usable speech recognition capability.

Everything here is a pure function of an ``EnvironmentDescriptor`` so it can
be exercised with synthetic user-agent strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from models import CapabilityProbe, EnvironmentDescriptor

CONSTRUCTOR_NAMES = (
    "SpeechRecognition",
    "webkitSpeechRecognition",
    "mozSpeechRecognition",
    "msSpeechRecognition",
)

_MOBILE_RE = re.compile(r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
_MAC_RE = re.compile(r"(Macintosh|Mac OS)")
_IOS_VERSION_RE = re.compile(r"OS (\d+)_(\d+)")

MIN_IOS_VERSION = (14, 5)


@dataclass(frozen=True)
class SupportedEnvironment:
    name: str
    versions: str
    support: str
    notes: str


@dataclass(frozen=True)
class UnsupportedEnvironment:
    name: str
    reason: str
    alternative: str


_SUPPORTED = (
    SupportedEnvironment("Google Chrome", "25+", "Full support", "Best compatibility and performance"),
    SupportedEnvironment("Microsoft Edge", "79+", "Full support", "Chromium-based Edge has full support"),
    SupportedEnvironment(
        "Safari", "14.1+ (macOS), 14.5+ (iOS)", "Full support", "Requires user interaction to start"
    ),
    SupportedEnvironment("Samsung Internet", "6.2+", "Full support", "Mobile browser with good support"),
    SupportedEnvironment("Opera", "27+", "Partial support", "Limited features compared to Chrome"),
)

_UNSUPPORTED = (
    UnsupportedEnvironment("Brave Browser", "Disabled for privacy reasons", "Use Chrome or Edge"),
    UnsupportedEnvironment("Firefox", "No speech recognition support", "Use Chrome, Edge, or Safari"),
    UnsupportedEnvironment("Internet Explorer", "Legacy browser, no support", "Upgrade to modern browser"),
    UnsupportedEnvironment(
        "Older Safari", "Requires Safari 14.1+ (macOS) or 14.5+ (iOS)", "Update Safari or use Chrome"
    ),
)


def supported_environments() -> Tuple[SupportedEnvironment, ...]:
    return _SUPPORTED


def unsupported_environments() -> Tuple[UnsupportedEnvironment, ...]:
    return _UNSUPPORTED


def resolve_constructor(environment: EnvironmentDescriptor) -> Optional[Callable[[], Any]]:
    """Return the first vendor constructor the host exposes, or ``None``."""
    for name in CONSTRUCTOR_NAMES:
        factory = environment.constructors.get(name)
        if factory is not None:
            return factory
    return None


def _gated(name: str, present: bool, missing_reason: str) -> CapabilityProbe:
    return CapabilityProbe(
        supported=present,
        environment_name=name,
        reason="" if present else missing_reason,
    )


def probe(environment: EnvironmentDescriptor) -> CapabilityProbe:
    """Classify the environment; the first matching rule wins."""
    if environment.identity is None:
        return CapabilityProbe(False, "Unknown", "Not running in a hosting environment")

    raw = environment.identity
    ua = raw.lower()
    present = resolve_constructor(environment) is not None

    is_brave = environment.privacy_restricted or "brave" in ua
    is_edge = "edg" in ua
    is_chrome = "chrome" in ua and not is_edge and not is_brave
    is_safari = "safari" in ua and "chrome" not in ua
    is_firefox = "firefox" in ua
    is_opera = "opr" in ua or "opera" in ua

    if is_brave:
        return CapabilityProbe(
            False, "Brave", "Brave Browser does not support speech recognition for privacy reasons"
        )

    if is_firefox:
        return CapabilityProbe(False, "Firefox", "Firefox does not support speech recognition")

    if is_opera:
        return _gated("Opera", present, "Opera has limited speech recognition support")

    if is_chrome:
        return _gated("Chrome", present, "Chrome should support speech recognition but it's not available")

    if is_edge:
        return _gated("Edge", present, "Edge should support speech recognition but it's not available")

    if is_safari:
        if _MOBILE_RE.search(raw):
            match = _IOS_VERSION_RE.search(raw)
            if match:
                version = (int(match.group(1)), int(match.group(2)))
                if version < MIN_IOS_VERSION:
                    reason = "Speech recognition requires iOS 14.5 or later"
                elif not present:
                    reason = "Speech recognition is not available"
                else:
                    reason = ""
                return CapabilityProbe(version >= MIN_IOS_VERSION and present, "Safari (iOS)", reason)

        if _MAC_RE.search(raw):
            return _gated("Safari (macOS)", present, "Speech recognition requires Safari 14.1 or later")

        return _gated("Safari", present, "Speech recognition may not be supported on this Safari version")

    return _gated("Unknown Environment", present, "This environment does not support speech recognition")
