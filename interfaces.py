"""Protocol interfaces used by SessionController and RevealRenderer."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Protocol

from models import CaptureHandle, EncodedAudioPayload


class CaptureDevice(Protocol):
    def request_permission(self) -> bool: ...

    def acquire(self) -> CaptureHandle: ...

    def stop_and_release(self, handle: CaptureHandle) -> Optional[Path]: ...

    def read_encoded(self, location: Path) -> EncodedAudioPayload: ...

    def discard(self, location: Path) -> None: ...


class Summarizer(Protocol):
    def summarize(self, payload: EncodedAudioPayload, instruction: str) -> str: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_summary_model(self) -> str: ...

    def get_reveal_delay_ms(self) -> int: ...

    def get_min_payload_chars(self) -> int: ...
