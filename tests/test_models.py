from __future__ import annotations

import pytest

from models import AutoStopOptions, Options


def test_defaults() -> None:
    options = Options()

    assert options.continuous is True
    assert options.interim_results is True
    assert options.max_alternatives == 1
    assert options.language == "en-US"
    assert options.auto_stop_on_silence == AutoStopOptions(enabled=False, silence_duration_ms=3000)


def test_merged_keeps_unspecified_fields() -> None:
    base = Options(language="es-ES", auto_stop_on_silence=AutoStopOptions(enabled=True, silence_duration_ms=1500))

    merged = base.merged({"continuous": False, "auto_stop_on_silence": {"silence_duration_ms": 4000}})

    assert merged.language == "es-ES"
    assert merged.continuous is False
    assert merged.auto_stop_on_silence.enabled is True
    assert merged.auto_stop_on_silence.silence_duration_ms == 4000


def test_merged_returns_independent_copy() -> None:
    base = Options()

    merged = base.merged(None)
    merged.auto_stop_on_silence.enabled = True

    assert base.auto_stop_on_silence.enabled is False


def test_merged_with_options_instance_replaces() -> None:
    override = Options(language="it-IT")

    assert Options(language="de-DE").merged(override).language == "it-IT"


def test_mapping_auto_stop_in_constructor() -> None:
    options = Options(auto_stop_on_silence={"enabled": True})  # type: ignore[arg-type]

    assert options.auto_stop_on_silence.enabled is True
    assert options.auto_stop_on_silence.silence_duration_ms == 3000


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_alternatives": 0},
        {"auto_stop_on_silence": {"silence_duration_ms": -1}},
        {"langauge": "en-GB"},
        {"auto_stop_on_silence": {"duration": 10}},
        {"auto_stop_on_silence": True},
        {"auto_stop_on_silence": {"silence_duration_ms": None}},
        {"max_alternatives": "3"},
        {"max_alternatives": True},
        {"language": None},
    ],
)
def test_invalid_overrides_raise(overrides: dict) -> None:
    with pytest.raises(ValueError):
        Options().merged(overrides)


def test_non_mapping_overrides_raise() -> None:
    with pytest.raises(ValueError):
        Options().merged(["language"])  # type: ignore[arg-type]


def test_auto_stop_none_keeps_previous_values() -> None:
    base = Options(auto_stop_on_silence=AutoStopOptions(enabled=True, silence_duration_ms=800))

    assert base.merged({"auto_stop_on_silence": None}).auto_stop_on_silence.silence_duration_ms == 800
