"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from models import AutoStopOptions, Options

logger = logging.getLogger(__name__)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "speech_session" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_options(self) -> Options:
        """Stored default options; anything missing or malformed falls back to defaults."""
        raw = self._read_all().get("options", {})
        if not isinstance(raw, dict):
            return Options()
        defaults = Options()
        try:
            return Options(
                continuous=bool(raw.get("continuous", defaults.continuous)),
                interim_results=bool(raw.get("interim_results", defaults.interim_results)),
                max_alternatives=int(raw.get("max_alternatives", defaults.max_alternatives)),
                language=str(raw.get("language", defaults.language)),
                auto_stop_on_silence=AutoStopOptions(
                    enabled=bool(raw.get("auto_stop_enabled", False)),
                    silence_duration_ms=int(raw.get("silence_duration_ms", 3000)),
                ),
            )
        except (TypeError, ValueError) as exc:
            logger.warning("ignoring invalid stored options in %s: %s", self._path, exc)
            return defaults

    def set_options(self, options: Options) -> None:
        data = self._read_all()
        data["options"] = {
            "continuous": options.continuous,
            "interim_results": options.interim_results,
            "max_alternatives": options.max_alternatives,
            "language": options.language,
            "auto_stop_enabled": options.auto_stop_on_silence.enabled,
            "silence_duration_ms": options.auto_stop_on_silence.silence_duration_ms,
        }
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
