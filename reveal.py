"""Progressive character-by-character text reveal.

The renderer owns at most one pending timer handle. Every ``set_source`` and
``close`` cancels that handle and bumps a generation counter, so a tick that
was already queued by the event loop for an abandoned string is dropped
instead of advancing the newer reveal.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from interfaces import Scheduler, TimerHandle
from models import RevealState

logger = logging.getLogger("echonotes.reveal")

UpdateCallback = Callable[[str], None]


class RevealRenderer:
    def __init__(
        self,
        scheduler: Scheduler,
        delay_ms: int = 25,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        if delay_ms <= 0:
            raise ValueError("delay_ms must be > 0")
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._on_update = on_update

        self._source = ""
        self._visible_length = 0
        self._generation = 0
        self._handle: Optional[TimerHandle] = None
        self._closed = False

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def source(self) -> str:
        return self._source

    @property
    def visible_length(self) -> int:
        return self._visible_length

    @property
    def visible_text(self) -> str:
        return self._source[: self._visible_length]

    @property
    def is_done(self) -> bool:
        return self._visible_length >= len(self._source)

    @property
    def state(self) -> RevealState:
        return RevealState(source=self._source, visible_length=self._visible_length)

    def get_visible_text(self) -> str:
        return self.visible_text

    def set_source(self, text: str) -> None:
        """Restart the reveal for ``text``, even if it equals the current source."""
        self._cancel_pending()
        self._generation += 1
        self._closed = False
        self._source = text or ""
        self._visible_length = 0
        self._emit()
        if self._source:
            self._schedule()

    def close(self) -> None:
        self._cancel_pending()
        self._generation += 1
        self._closed = True

    def _schedule(self) -> None:
        generation = self._generation
        self._handle = self._scheduler.call_later(
            self._delay_ms, lambda: self._tick(generation)
        )

    def _tick(self, generation: int) -> None:
        if self._closed or generation != self._generation:
            logger.debug("dropped stale reveal tick", extra={"event": "stale_tick"})
            return
        self._handle = None
        if self.is_done:
            return
        self._visible_length += 1
        self._emit()
        if not self.is_done:
            self._schedule()

    def _cancel_pending(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _emit(self) -> None:
        if self._on_update:
            self._on_update(self.visible_text)
