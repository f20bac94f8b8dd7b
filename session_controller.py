"""State-machine based speech recognition session orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional, Tuple, Union

import capability_detector
from errors import (
    ERROR_MESSAGES,
    INITIALIZATION_ERROR,
    INITIALIZATION_KIND,
    NOT_SUPPORTED,
    NOT_SUPPORTED_KIND,
    RECOGNITION_KIND,
    START_ERROR,
    START_KIND,
    classify,
)
from interfaces import RecognitionCapability, Scheduler
from models import (
    CapabilityEvent,
    CapabilityEventKind,
    EnvironmentDescriptor,
    EnvironmentInfo,
    ErrorInfo,
    Options,
    RecognitionResult,
    Session,
    SessionSnapshot,
    SessionStatus,
)
from silence_watchdog import SilenceWatchdog
from transcript import merge

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionStatus, SessionStatus], None]
TranscriptCallback = Callable[[str], None]
ErrorCallback = Callable[[ErrorInfo], None]

OptionsLike = Union[Options, Mapping[str, Any], None]


class SessionController:
    """Owns one recognition capability and the session built from its events.

    Nothing raises across the public methods or the constructor: failures
    end up in ``error`` and are reported through ``on_error``. Invalid
    construction options fall back to the defaults.
    """

    def __init__(
        self,
        environment: EnvironmentDescriptor,
        options: OptionsLike = None,
        scheduler: Optional[Scheduler] = None,
        on_state_change: Optional[StateCallback] = None,
        on_transcript: Optional[TranscriptCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._environment = environment
        self._on_state_change = on_state_change
        self._on_transcript = on_transcript
        self._on_error = on_error

        self._lock = threading.RLock()
        self._session = Session()
        self._options = Options()
        self._watchdog = SilenceWatchdog(scheduler)
        self._capability: Optional[RecognitionCapability] = None
        self._auto_stop_issued = False

        with self._lock:
            try:
                self._options = self._options.merged(options)
            except (TypeError, ValueError) as exc:
                self._record_error(
                    ErrorInfo(code=INITIALIZATION_ERROR, message=str(exc), kind=INITIALIZATION_KIND)
                )
            self._initialize()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def is_listening(self) -> bool:
        return self._session.status == SessionStatus.LISTENING

    @property
    def is_supported(self) -> bool:
        return self._session.supported

    @property
    def is_initializing(self) -> bool:
        return self._session.initializing

    @property
    def transcript(self) -> str:
        return self._session.combined_transcript

    @property
    def interim_transcript(self) -> str:
        return self._session.interim_transcript

    @property
    def final_transcript(self) -> str:
        return self._session.final_transcript

    @property
    def results(self) -> Tuple[RecognitionResult, ...]:
        return tuple(self._session.results)

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._session.error

    @property
    def options(self) -> Options:
        return self._options.merged(None)

    @property
    def watchdog_armed(self) -> bool:
        return self._watchdog.armed

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            session = self._session
            return SessionSnapshot(
                status=session.status,
                is_listening=session.status == SessionStatus.LISTENING,
                is_supported=session.supported,
                is_initializing=session.initializing,
                transcript=session.combined_transcript,
                interim_transcript=session.interim_transcript,
                final_transcript=session.final_transcript,
                results=tuple(session.results),
                error=session.error,
            )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_listening(self, overrides: OptionsLike = None) -> None:
        with self._lock:
            if self._session.status == SessionStatus.LISTENING:
                # Overrides passed while listening are dropped.
                return

            if self._session.status == SessionStatus.UNSUPPORTED:
                probe = capability_detector.probe(self._environment)
                self._record_error(
                    ErrorInfo(
                        code=NOT_SUPPORTED,
                        message=ERROR_MESSAGES[NOT_SUPPORTED],
                        kind=NOT_SUPPORTED_KIND,
                        environment_info=EnvironmentInfo(probe.environment_name, probe.reason),
                    )
                )
                return

            try:
                self._options = self._options.merged(overrides)
            except (TypeError, ValueError) as exc:
                self._record_error(ErrorInfo(code=START_ERROR, message=str(exc), kind=START_KIND))
                return

            if self._capability is None:
                self._capability = self._create_capability()
            capability = self._capability
            if capability is None:
                return

            try:
                self._apply_options(capability)
                capability.start()
            except Exception as exc:
                logger.warning("start command failed: %s", exc)
                self._record_error(
                    ErrorInfo(
                        code=START_ERROR,
                        message=str(exc) or ERROR_MESSAGES[START_ERROR],
                        kind=START_KIND,
                    )
                )
                return
            logger.info("start requested (language=%s)", self._options.language)

    def stop_listening(self) -> None:
        with self._lock:
            if self._session.status != SessionStatus.LISTENING or self._capability is None:
                return
            self._watchdog.disarm()
            self._safe_stop_capability()

    def abort_listening(self) -> None:
        with self._lock:
            self._watchdog.disarm()
            self._safe_abort_capability()

    def reset_transcript(self) -> None:
        with self._lock:
            self._session.clear_transcript()

    def clear_error(self) -> None:
        with self._lock:
            self._session.error = None

    def close(self) -> None:
        """Tear down: abort the live capability and drop it."""
        with self._lock:
            self._watchdog.disarm()
            self._safe_abort_capability()
            self._capability = None
            if self._session.status == SessionStatus.LISTENING:
                self._transition(SessionStatus.READY)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        probe = capability_detector.probe(self._environment)
        if not probe.supported:
            logger.warning("speech recognition unsupported in %s: %s", probe.environment_name, probe.reason)
            self._mark_unsupported(
                ErrorInfo(
                    code=NOT_SUPPORTED,
                    message=probe.reason,
                    kind=NOT_SUPPORTED_KIND,
                    environment_info=EnvironmentInfo(probe.environment_name, probe.reason),
                )
            )
            return

        self._capability = self._create_capability()
        if self._capability is None:
            return
        self._session.supported = True
        self._session.initializing = False
        self._transition(SessionStatus.READY)

    def _create_capability(self) -> Optional[RecognitionCapability]:
        factory = capability_detector.resolve_constructor(self._environment)
        if factory is None:
            probe = capability_detector.probe(self._environment)
            self._mark_unsupported(
                ErrorInfo(
                    code=NOT_SUPPORTED,
                    message="Speech recognition is not supported in this environment",
                    kind=NOT_SUPPORTED_KIND,
                    environment_info=EnvironmentInfo(
                        probe.environment_name, "Speech recognition constructor not found"
                    ),
                )
            )
            return None

        try:
            capability = factory()
            self._apply_options(capability)
            capability.set_event_handler(lambda event: self._handle_event(capability, event))
        except Exception as exc:
            logger.warning("capability initialization failed: %s", exc)
            self._mark_unsupported(
                ErrorInfo(
                    code=INITIALIZATION_ERROR,
                    message=str(exc) or ERROR_MESSAGES[INITIALIZATION_ERROR],
                    kind=INITIALIZATION_KIND,
                )
            )
            return None
        return capability

    def _apply_options(self, capability: RecognitionCapability) -> None:
        capability.continuous = self._options.continuous
        capability.interim_results = self._options.interim_results
        capability.max_alternatives = self._options.max_alternatives
        capability.language = self._options.language

    def _handle_event(self, source: RecognitionCapability, event: CapabilityEvent) -> None:
        with self._lock:
            if source is not self._capability:
                logger.debug("ignoring %s event from a retired capability", event.kind)
                return
            kind = event.kind
            if kind == CapabilityEventKind.START.value:
                self._on_start()
            elif kind == CapabilityEventKind.RESULT.value:
                self._on_result(event)
            elif kind == CapabilityEventKind.ERROR.value:
                self._on_capability_error(event)
            elif kind == CapabilityEventKind.END.value:
                self._on_end()
            else:
                logger.debug("ignoring unknown capability event %r", kind)

    def _on_start(self) -> None:
        self._session.error = None
        self._auto_stop_issued = False
        self._transition(SessionStatus.LISTENING)
        self._rearm_watchdog()

    def _on_result(self, event: CapabilityEvent) -> None:
        session = self._session
        outcome = merge(session.final_transcript, event.results, event.result_index)
        session.final_transcript = outcome.final_transcript(session.final_transcript)
        session.interim_transcript = outcome.interim
        session.combined_transcript = session.final_transcript + session.interim_transcript
        session.results.extend(outcome.results)
        if session.status == SessionStatus.LISTENING:
            self._rearm_watchdog()
        if self._on_transcript:
            self._on_transcript(session.combined_transcript)

    def _on_capability_error(self, event: CapabilityEvent) -> None:
        classified = classify(event.code)
        # The end event that follows disarms the watchdog.
        self._transition(SessionStatus.READY)
        self._record_error(ErrorInfo(code=classified.code, message=classified.message, kind=RECOGNITION_KIND))

    def _on_end(self) -> None:
        self._watchdog.disarm()
        self._transition(SessionStatus.READY)

    def _on_silence(self) -> None:
        with self._lock:
            if self._session.status != SessionStatus.LISTENING:
                return
            logger.info("no speech for %d ms, stopping", self._options.auto_stop_on_silence.silence_duration_ms)
            self._auto_stop_issued = True
            self._safe_stop_capability()
            final_text = self._session.final_transcript
            callback = self._options.auto_stop_on_silence.on_auto_stop
            if callback and final_text:
                callback(final_text)

    def _rearm_watchdog(self) -> None:
        auto_stop = self._options.auto_stop_on_silence
        # Results still arriving after an auto-stop must not schedule another one.
        if not auto_stop.enabled or self._auto_stop_issued:
            return
        self._watchdog.arm(auto_stop.silence_duration_ms, self._on_silence)

    def _mark_unsupported(self, error: ErrorInfo) -> None:
        self._session.supported = False
        self._session.initializing = False
        self._transition(SessionStatus.UNSUPPORTED)
        self._record_error(error)

    def _record_error(self, error: ErrorInfo) -> None:
        logger.warning("speech session error %s: %s", error.code, error.message)
        self._session.error = error
        if self._on_error:
            self._on_error(error)

    def _safe_stop_capability(self) -> None:
        if self._capability is None:
            return
        try:
            self._capability.stop()
        except Exception as exc:
            logger.warning("stop command failed: %s", exc)

    def _safe_abort_capability(self) -> None:
        if self._capability is None:
            return
        try:
            self._capability.abort()
        except Exception as exc:
            logger.warning("abort command failed: %s", exc)

    def _transition(self, to_status: SessionStatus) -> None:
        from_status = self._session.status
        if from_status == to_status:
            return
        self._session.status = to_status
        logger.debug("session %s -> %s", from_status.value, to_status.value)
        if self._on_state_change:
            self._on_state_change(from_status, to_status)
