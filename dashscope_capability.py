"""Recognition capability backed by DashScope qwen3-asr-flash.

The model accepts complete audio and streams back recognition text via
``stream=True``. The host pushes PCM ``AudioFrame``s into a queue and puts
``None`` to close an utterance; each utterance is converted to WAV and sent
to the model. Streamed text is emitted as interim results, the last one as a
final result. Events are delivered on the worker thread.
"""

from __future__ import annotations

import base64
import io
import logging
import os
import threading
import wave
from queue import Empty, Queue
from typing import Callable, List, Optional, Tuple

from models import AudioFrame, CapabilityEvent, CapabilityEventKind, RawAlternative, RawResult

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

# DashScope does not report a confidence score.
UNREPORTED_CONFIDENCE = 0.0


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _language_code(language: str) -> str:
    """``en-US`` -> ``en``; DashScope takes bare language codes."""
    return language.split("-", 1)[0].lower()


class DashscopeCapability:
    def __init__(
        self,
        api_key: str,
        audio_queue: Queue[AudioFrame | None],
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
    ) -> None:
        self.continuous = True
        self.interim_results = True
        self.max_alternatives = 1
        self.language = "en-US"

        self._api_key = api_key
        self._audio_queue = audio_queue
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._abort_event = threading.Event()
        self._on_event: Optional[Callable[[CapabilityEvent], None]] = None
        self._results: List[RawResult] = []

    def set_event_handler(self, on_event: Callable[[CapabilityEvent], None]) -> None:
        self._on_event = on_event

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            raise RuntimeError("recognition has already started")
        self._stop_event.clear()
        self._abort_event.clear()
        self._results = []
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Finish recognising the audio captured so far, then end."""
        self._stop_event.set()

    def abort(self) -> None:
        """Discard pending audio and end without further results."""
        self._abort_event.set()
        self._stop_event.set()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        self._emit(CapabilityEvent(kind=CapabilityEventKind.START.value))
        try:
            index = 0
            while True:
                pcm, sample_rate, channels = self._collect_utterance()
                if self._abort_event.is_set():
                    return
                if not pcm:
                    if not self._stop_event.is_set():
                        self._emit_error("no-speech", "utterance contained no audio")
                    return
                if not self._recognize(bytes(pcm), sample_rate, channels, index):
                    return
                index += 1
                if self._stop_event.is_set() or not self.continuous:
                    return
        finally:
            self._emit(CapabilityEvent(kind=CapabilityEventKind.END.value))

    def _collect_utterance(self) -> Tuple[bytearray, int, int]:
        """Consume audio frames until the sentinel or a stop request."""
        pcm = bytearray()
        sample_rate = 16000
        channels = 1
        while not self._stop_event.is_set():
            try:
                frame = self._audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:  # Sentinel
                break
            pcm.extend(frame.pcm16_bytes)
            sample_rate = frame.sample_rate
            channels = frame.channels
        return pcm, sample_rate, channels

    def _recognize(self, pcm: bytes, sample_rate: int, channels: int, index: int) -> bool:  # noqa: C901
        """Stream one utterance through DashScope; False ends the session."""
        if dashscope is None:
            self._emit_error("service-not-allowed", "dashscope is not installed")
            return False

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            self._emit_error("service-not-allowed", "No API key configured")
            return False

        wav_base64 = _pcm_to_wav_base64(pcm, sample_rate, channels)
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_base64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": False, "language": _language_code(self.language)},
                stream=True,
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            self._emit_exception(exc)
            return False

        latest_text = ""
        try:
            for chunk in response:
                if self._abort_event.is_set():
                    return False
                text = self._extract_text(chunk)
                if text:
                    latest_text = text
                    if self.interim_results:
                        self._emit_result(index, RawResult([RawAlternative(text, UNREPORTED_CONFIDENCE)]))
        except Exception as exc:
            self._emit_exception(exc)
            return False

        if not latest_text:
            self._emit_error("no-speech", "no text recognised")
            return False

        final = RawResult([RawAlternative(latest_text, UNREPORTED_CONFIDENCE)], is_final=True)
        self._results.append(final)
        self._emit(
            CapabilityEvent(
                kind=CapabilityEventKind.RESULT.value,
                result_index=index,
                results=list(self._results),
            )
        )
        return True

    def _emit_result(self, index: int, pending: RawResult) -> None:
        self._emit(
            CapabilityEvent(
                kind=CapabilityEventKind.RESULT.value,
                result_index=index,
                results=[*self._results, pending],
            )
        )

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if isinstance(chunk, dict):
            output = chunk.get("output", {})
            choices = output.get("choices", [])
            if not choices:
                return ""
            message = choices[0].get("message", {})
            content = message.get("content", [])
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _emit_exception(self, exc: Exception) -> None:
        """Map an SDK/network exception to a raw capability error code."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "403" in low or "auth" in low or "api key" in low:
            code = "service-not-allowed"
        elif "timeout" in low or "network" in low or "connection" in low:
            code = "network"
        else:
            code = "recognition-failed"
        self._emit_error(code, message)

    def _emit_error(self, code: str, message: str) -> None:
        logger.warning("dashscope recognition error %s: %s", code, message)
        self._emit(CapabilityEvent(kind=CapabilityEventKind.ERROR.value, code=code, message=message))

    def _emit(self, event: CapabilityEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)
