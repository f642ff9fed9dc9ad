"""State-machine based recording session orchestration.

IDLE -> RECORDING -> FINALIZING -> (TRANSCRIBING ->) SUMMARIZED | FAILED.
SUMMARIZED and FAILED are terminal for a session and accept a new start.
start_session holds the lock across the permission check and acquire so a
concurrent start waits and is then rejected. Finalization holds it only to
check and move state; stop, encoding and the network call run outside it
while the busy states keep new sessions out.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from errors import CAPTURE_UNAVAILABLE, ERROR_MESSAGES, PERMISSION_DENIED, TRANSCRIPTION_FAILED
from interfaces import CaptureDevice, Summarizer
from models import RecordingSession, SessionState, SummaryResult
from summarizer import SUMMARY_INSTRUCTION

logger = logging.getLogger("echonotes.session")

StateCallback = Callable[[SessionState, SessionState], None]
SummaryCallback = Callable[[str], None]
ErrorCallback = Callable[[str, str], None]


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionController:
    def __init__(
        self,
        device: CaptureDevice,
        summarizer: Summarizer,
        min_payload_chars: int = 100,
        instruction: str = SUMMARY_INSTRUCTION,
        on_state_change: Optional[StateCallback] = None,
        on_summary: Optional[SummaryCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._device = device
        self._summarizer = summarizer
        self._min_payload_chars = min_payload_chars
        self._instruction = instruction
        self._on_state_change = on_state_change
        self._on_summary = on_summary
        self._on_error = on_error
        self._clock = clock

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._session_id = 0
        self._session: Optional[RecordingSession] = None
        self._summary: Optional[SummaryResult] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state.is_busy

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def summary(self) -> Optional[SummaryResult]:
        return self._summary

    @property
    def summary_text(self) -> str:
        return self._summary.text if self._summary else ""

    def replace_summarizer(self, summarizer: Summarizer) -> None:
        with self._lock:
            self._summarizer = summarizer

    def start_session(self) -> bool:
        with self._lock:
            if self._state.is_busy:
                logger.info(
                    "start rejected while %s", self._state.value, extra={"event": "start_rejected"}
                )
                return False
            if not self._request_permission():
                self._emit_error(PERMISSION_DENIED, ERROR_MESSAGES[PERMISSION_DENIED])
                return False
            try:
                handle = self._device.acquire()
            except Exception as exc:
                self._session_id += 1
                self._set_summary(SummaryResult.error())
                self._emit_error(CAPTURE_UNAVAILABLE, f"acquire failed: {exc}")
                self._transition(SessionState.FAILED)
                return False

            self._session_id += 1
            self._session = RecordingSession(
                session_id=self._session_id,
                handle=handle,
                started_at_ms=self._clock(),
            )
            self._transition(SessionState.RECORDING)
            return True

    def stop_session(self) -> None:
        with self._lock:
            if self._state != SessionState.RECORDING or self._session is None:
                return
            session = self._session
            self._set_summary(None)
            self._transition(SessionState.FINALIZING)

        self._finalize(session)

    def reset(self) -> None:
        with self._lock:
            session = self._session
            was_recording = self._state == SessionState.RECORDING
            self._session = None
            self._set_summary(None)
            self._transition(SessionState.IDLE)

        if was_recording and session is not None and session.handle is not None:
            handle = session.handle
            session.handle = None
            try:
                location = self._device.stop_and_release(handle)
                if location is not None:
                    self._device.discard(location)
            except Exception as exc:
                logger.warning(
                    "release on reset failed: %s",
                    exc,
                    extra={"event": "reset_release_failed", "session_id": session.session_id},
                )

    def _finalize(self, session: RecordingSession) -> None:
        handle = session.handle
        session.handle = None
        try:
            location = self._device.stop_and_release(handle)
        except Exception as exc:
            self._finish(session, SummaryResult.error(), CAPTURE_UNAVAILABLE, f"stop failed: {exc}")
            return
        if location is None:
            self._finish(session, SummaryResult.error(), CAPTURE_UNAVAILABLE, "no audio was captured")
            return

        try:
            payload = self._device.read_encoded(location)
        except Exception as exc:
            self._finish(session, SummaryResult.error(), CAPTURE_UNAVAILABLE, f"read failed: {exc}")
            return

        if len(payload) < self._min_payload_chars:
            logger.info(
                "recording too short (%d chars)",
                len(payload),
                extra={"event": "too_short", "session_id": session.session_id},
            )
            self._finish(session, SummaryResult.too_short())
            return

        with self._lock:
            if self._session is not session:
                return
            summarizer = self._summarizer
            self._transition(SessionState.TRANSCRIBING)

        try:
            text = summarizer.summarize(payload, self._instruction).strip()
        except Exception as exc:
            code = getattr(exc, "code", "")
            detail = f"{code}: {exc}" if code else str(exc)
            self._finish(session, SummaryResult.error(), TRANSCRIPTION_FAILED, detail)
            return
        if not text:
            self._finish(session, SummaryResult.error(), TRANSCRIPTION_FAILED, "empty summary")
            return
        self._finish(session, SummaryResult.from_text(text))

    def _finish(
        self,
        session: RecordingSession,
        result: SummaryResult,
        code: str = "",
        message: str = "",
    ) -> None:
        with self._lock:
            if self._session is not session:
                logger.info(
                    "discarding result of stale session",
                    extra={"event": "stale_result", "session_id": session.session_id},
                )
                return
            self._session = None
            if code:
                self._emit_error(code, message)
            self._set_summary(result)
            self._transition(SessionState.FAILED if code else SessionState.SUMMARIZED)

    def _request_permission(self) -> bool:
        try:
            return bool(self._device.request_permission())
        except Exception as exc:
            logger.warning("permission request failed: %s", exc, extra={"event": "permission_error"})
            return False

    def _set_summary(self, result: Optional[SummaryResult]) -> None:
        self._summary = result
        if self._on_summary:
            self._on_summary(result.text if result else "")

    def _emit_error(self, code: str, message: str) -> None:
        logger.warning(
            "%s: %s",
            code,
            message,
            extra={"event": "session_error", "code": code, "session_id": self._session_id},
        )
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.info(
            "%s -> %s",
            from_state.value,
            to_state.value,
            extra={"event": "transition", "session_id": self._session_id},
        )
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
