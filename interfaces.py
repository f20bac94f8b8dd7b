"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from typing import Callable, Protocol

from models import CapabilityEvent, Options


class RecognitionCapability(Protocol):
    continuous: bool
    interim_results: bool
    max_alternatives: int
    language: str

    def set_event_handler(self, on_event: Callable[[CapabilityEvent], None]) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def abort(self) -> None: ...


CapabilityFactory = Callable[[], RecognitionCapability]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_options(self) -> Options: ...

    def set_options(self, options: Options) -> None: ...
