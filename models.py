"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    FINALIZING = "FINALIZING"
    TRANSCRIBING = "TRANSCRIBING"
    SUMMARIZED = "SUMMARIZED"
    FAILED = "FAILED"

    @property
    def is_busy(self) -> bool:
        return self in (SessionState.RECORDING, SessionState.FINALIZING, SessionState.TRANSCRIBING)


class SummaryKind(str, Enum):
    TEXT = "text"
    TOO_SHORT = "too_short"
    ERROR = "error"


TOO_SHORT_TEXT = "Recording too short — try speaking longer."
ERROR_TEXT = "Error — Try again."


@dataclass(frozen=True)
class CaptureHandle:
    capture_id: int
    started_at_ms: int = 0


@dataclass
class RecordingSession:
    session_id: int
    handle: Optional[CaptureHandle] = None
    started_at_ms: int = 0


@dataclass(frozen=True)
class EncodedAudioPayload:
    data: bytes
    media_type: str = "audio/wav"

    def __len__(self) -> int:
        return len(self.data)

    def as_data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.data.decode('ascii')}"


@dataclass(frozen=True)
class SummaryResult:
    kind: SummaryKind
    text: str

    @classmethod
    def from_text(cls, text: str) -> "SummaryResult":
        return cls(kind=SummaryKind.TEXT, text=text)

    @classmethod
    def too_short(cls) -> "SummaryResult":
        return cls(kind=SummaryKind.TOO_SHORT, text=TOO_SHORT_TEXT)

    @classmethod
    def error(cls) -> "SummaryResult":
        return cls(kind=SummaryKind.ERROR, text=ERROR_TEXT)


@dataclass(frozen=True)
class RevealState:
    source: str = ""
    visible_length: int = 0

    @property
    def visible_text(self) -> str:
        return self.source[: self.visible_length]

    @property
    def is_done(self) -> bool:
        return self.visible_length >= len(self.source)
