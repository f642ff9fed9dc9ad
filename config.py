"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

DEFAULT_HOTKEY = "Key.f9"
DEFAULT_SUMMARY_MODEL = "qwen-audio-turbo-latest"
DEFAULT_REVEAL_DELAY_MS = 25
DEFAULT_MIN_PAYLOAD_CHARS = 100


def default_config_dir() -> Path:
    return Path.home() / ".config" / "echonotes"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_dir() / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        data = self._read_all()
        data["api_key"] = key
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_summary_model(self) -> str:
        data = self._read_all()
        return str(data.get("summary_model") or DEFAULT_SUMMARY_MODEL)

    def get_reveal_delay_ms(self) -> int:
        return self._get_positive_int("reveal_delay_ms", DEFAULT_REVEAL_DELAY_MS)

    def get_min_payload_chars(self) -> int:
        return self._get_positive_int("min_payload_chars", DEFAULT_MIN_PAYLOAD_CHARS)

    def _get_positive_int(self, key: str, default: int) -> int:
        value = self._read_all().get(key, default)
        if isinstance(value, bool):
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default
        return number if number > 0 else default

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
