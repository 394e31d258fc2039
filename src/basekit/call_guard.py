from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from basekit.errors import ConcurrentCallError, ThrottledError
from basekit.telemetry import Telemetry

logger = logging.getLogger(__name__)

T = TypeVar("T")

RemoteInvoker = Callable[[], Awaitable[T]]


@dataclass
class CallRecord:
    last_call_at: float | None = None
    in_flight: bool = False


class CallGuard:
    """Per-name throttle window plus in-flight de-duplication for remote calls.

    A call is rejected with ``ThrottledError`` when the previous accepted call
    to the same name started less than ``window`` seconds ago, and with
    ``ConcurrentCallError`` when a call to that name has not finished yet.
    Rejected calls never reach the invoker and leave the record untouched.
    """

    def __init__(self, default_window: float = 0.5, telemetry: Telemetry | None = None) -> None:
        if default_window < 0:
            raise ValueError("default_window must be non-negative")
        self._default_window = default_window
        self._records: dict[str, CallRecord] = {}
        self._lock = threading.Lock()
        self._telemetry = telemetry or Telemetry()

    @property
    def default_window(self) -> float:
        return self._default_window

    def set_default_window(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("window must be non-negative")
        self._default_window = seconds

    def snapshot(self, name: str) -> CallRecord | None:
        with self._lock:
            record = self._records.get(name)
            return dataclasses.replace(record) if record is not None else None

    def reset(self, name: str | None = None) -> None:
        """Forget throttle history; in-flight records are never dropped."""
        with self._lock:
            if name is None:
                self._records = {
                    key: record for key, record in self._records.items() if record.in_flight
                }
                return
            record = self._records.get(name)
            if record is None:
                return
            if record.in_flight:
                raise ConcurrentCallError(name)
            del self._records[name]

    async def attempt(
        self,
        name: str,
        invoker: RemoteInvoker[T],
        window: float | None = None,
        now: float | None = None,
    ) -> T:
        if not name:
            raise ValueError("name must be non-empty")
        effective_window = self._default_window if window is None else window
        if effective_window < 0:
            raise ValueError("window must be non-negative")
        ts = now if now is not None else time.monotonic()

        self._claim(name, window=effective_window, now=ts)
        started = time.monotonic()
        try:
            return await invoker()
        except Exception:
            self._telemetry.record_call_outcome(name, "failed")
            raise
        finally:
            self._release(name)
            self._telemetry.observe_call_duration(name, time.monotonic() - started)

    def _claim(self, name: str, window: float, now: float) -> None:
        with self._lock:
            record = self._records.get(name)
            if record is not None and record.last_call_at is not None:
                elapsed = now - record.last_call_at
                if elapsed < window:
                    logger.info("fn %s throttled", name)
                    self._telemetry.record_call_outcome(name, "throttled")
                    raise ThrottledError(name, retry_after=window - elapsed)
            if record is not None and record.in_flight:
                logger.info("fn %s in-flight", name)
                self._telemetry.record_call_outcome(name, "in_flight")
                raise ConcurrentCallError(name)

            if record is None:
                record = CallRecord()
                self._records[name] = record
            record.in_flight = True
            record.last_call_at = now
            self._telemetry.record_call_outcome(name, "accepted")

    def _release(self, name: str) -> None:
        with self._lock:
            record = self._records.get(name)
            if record is not None:
                record.in_flight = False
