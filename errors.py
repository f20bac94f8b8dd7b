"""Shared error codes, user-facing messages and capability error classification."""

from __future__ import annotations

from dataclasses import dataclass

NOT_SUPPORTED = "NOT_SUPPORTED"
INITIALIZATION_ERROR = "INITIALIZATION_ERROR"
START_ERROR = "START_ERROR"

NO_SPEECH = "NO_SPEECH"
AUDIO_CAPTURE = "AUDIO_CAPTURE"
NOT_ALLOWED = "NOT_ALLOWED"
NETWORK = "NETWORK"
SERVICE_NOT_ALLOWED = "SERVICE_NOT_ALLOWED"
BAD_GRAMMAR = "BAD_GRAMMAR"
LANGUAGE_NOT_SUPPORTED = "LANGUAGE_NOT_SUPPORTED"
ABORTED = "ABORTED"

NOT_SUPPORTED_KIND = "NotSupportedError"
INITIALIZATION_KIND = "InitializationError"
START_KIND = "StartError"
RECOGNITION_KIND = "SpeechRecognitionError"

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred during speech recognition"

ERROR_MESSAGES = {
    NOT_SUPPORTED: "Speech recognition is not supported",
    INITIALIZATION_ERROR: "Failed to initialize speech recognition",
    START_ERROR: "Failed to start speech recognition",
    NO_SPEECH: "No speech was detected",
    AUDIO_CAPTURE: "Audio capture failed",
    NOT_ALLOWED: "Permission to use microphone was denied",
    NETWORK: "Network error occurred",
    SERVICE_NOT_ALLOWED: "Speech recognition service is not allowed",
    BAD_GRAMMAR: "Grammar compilation failed",
    LANGUAGE_NOT_SUPPORTED: "Language is not supported",
    ABORTED: "Speech recognition was aborted",
}

# Raw codes reported by the capability, normalised form is the key above.
CAPABILITY_ERROR_CODES = frozenset(
    {
        "no-speech",
        "audio-capture",
        "not-allowed",
        "network",
        "service-not-allowed",
        "bad-grammar",
        "language-not-supported",
        "aborted",
    }
)


@dataclass(frozen=True)
class ClassifiedError:
    code: str
    message: str


def normalize_code(raw_code: str) -> str:
    return raw_code.upper().replace("-", "_")


def classify(raw_code: str) -> ClassifiedError:
    """Map a raw capability error code to a stable code and message.

    Unrecognised codes keep their normalised form but get the generic
    unknown-error message.
    """
    code = normalize_code(raw_code or "")
    if raw_code in CAPABILITY_ERROR_CODES:
        return ClassifiedError(code=code, message=ERROR_MESSAGES[code])
    return ClassifiedError(code=code, message=UNKNOWN_ERROR_MESSAGE)
