from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from basekit.telemetry import Telemetry

logger = logging.getLogger(__name__)

LoadingObserver = Callable[[bool, str | None], None]


class LoadingSignal:
    """Notify an observer when an asynchronous action starts and finishes.

    Every scope reports ``(True, message)`` on entry and ``(False, None)`` on
    exit, whether the body returns, raises or is cancelled. Scopes may nest;
    each one notifies on its own.
    """

    def __init__(
        self,
        observer: LoadingObserver | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._observer = observer
        self._telemetry = telemetry or Telemetry()
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def observer(self) -> LoadingObserver | None:
        return self._observer

    @observer.setter
    def observer(self, observer: LoadingObserver | None) -> None:
        self._observer = observer

    @asynccontextmanager
    async def scope(self, message: str | None = None) -> AsyncIterator[None]:
        self._active += 1
        self._telemetry.loading_scope_opened()
        self._notify(True, message)
        try:
            yield
        finally:
            self._active -= 1
            self._telemetry.loading_scope_closed()
            self._notify(False, None)

    def _notify(self, is_loading: bool, message: str | None) -> None:
        if self._observer is None:
            return
        try:
            self._observer(is_loading, message)
        except Exception:
            logger.exception("loading observer failed (is_loading=%s)", is_loading)
