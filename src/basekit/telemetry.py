from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

FN_CALLS_TOTAL = Counter(
    "basekit_fn_calls_total",
    "Guarded function call outcomes.",
    ["name", "result"],
)
FN_CALL_SECONDS = Histogram(
    "basekit_fn_call_seconds",
    "Duration of accepted function calls.",
    ["name"],
)
BACKEND_ERRORS_TOTAL = Counter(
    "basekit_backend_errors_total",
    "SDK errors translated at the facade boundary.",
    ["kind"],
)
LOADING_SCOPES_ACTIVE = Gauge(
    "basekit_loading_scopes_active",
    "Loading scopes currently open.",
)


class Telemetry:
    def record_call_outcome(self, name: str, result: str) -> None:
        FN_CALLS_TOTAL.labels(name=name, result=result).inc()

    def observe_call_duration(self, name: str, value: float) -> None:
        FN_CALL_SECONDS.labels(name=name).observe(max(0.0, value))

    def record_backend_error(self, kind: str) -> None:
        BACKEND_ERRORS_TOTAL.labels(kind=kind).inc()

    def loading_scope_opened(self) -> None:
        LOADING_SCOPES_ACTIVE.inc()

    def loading_scope_closed(self) -> None:
        LOADING_SCOPES_ACTIVE.dec()

    @staticmethod
    def scrape() -> tuple[bytes, str]:
        return generate_latest(), CONTENT_TYPE_LATEST
