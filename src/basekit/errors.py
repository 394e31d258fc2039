from __future__ import annotations


class FacadeError(Exception):
    """Base class for errors raised by basekit itself."""


class ThrottledError(FacadeError):
    def __init__(self, name: str, retry_after: float) -> None:
        super().__init__(f"call to {name!r} throttled; retry in {retry_after:.3f}s")
        self.name = name
        self.retry_after = retry_after


class ConcurrentCallError(FacadeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"call to {name!r} already in flight")
        self.name = name


class BackendError(FacadeError):
    """An SDK failure translated at the facade boundary; the SDK error is ``__cause__``."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
