from __future__ import annotations

import pytest

from errors import (
    CAPABILITY_ERROR_CODES,
    ERROR_MESSAGES,
    NOT_ALLOWED,
    SERVICE_NOT_ALLOWED,
    UNKNOWN_ERROR_MESSAGE,
    classify,
)


@pytest.mark.parametrize("raw_code", sorted(CAPABILITY_ERROR_CODES))
def test_known_codes_have_specific_messages(raw_code: str) -> None:
    classified = classify(raw_code)

    assert classified.code == raw_code.upper().replace("-", "_")
    assert classified.message == ERROR_MESSAGES[classified.code]
    assert classified.message != UNKNOWN_ERROR_MESSAGE


def test_not_allowed() -> None:
    classified = classify("not-allowed")
    assert classified.code == NOT_ALLOWED
    assert classified.message == "Permission to use microphone was denied"


def test_every_hyphen_is_replaced() -> None:
    assert classify("service-not-allowed").code == SERVICE_NOT_ALLOWED
    assert classify("some-brand-new-code").code == "SOME_BRAND_NEW_CODE"


def test_unknown_code_gets_generic_message() -> None:
    classified = classify("recognition-failed")
    assert classified.code == "RECOGNITION_FAILED"
    assert classified.message == UNKNOWN_ERROR_MESSAGE


def test_empty_code() -> None:
    classified = classify("")
    assert classified.code == ""
    assert classified.message == UNKNOWN_ERROR_MESSAGE
