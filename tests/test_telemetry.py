import unittest

from prometheus_client import REGISTRY

from basekit.call_guard import CallGuard
from basekit.errors import ThrottledError
from basekit.loading import LoadingSignal
from basekit.telemetry import Telemetry


class TelemetryTests(unittest.IsolatedAsyncioTestCase):
    async def test_guard_outcomes_are_exported(self) -> None:
        guard = CallGuard(telemetry=Telemetry())

        async def ok() -> str:
            return "ok"

        await guard.attempt("metrics-export", ok, window=1.0, now=0.0)
        with self.assertRaises(ThrottledError):
            await guard.attempt("metrics-export", ok, window=1.0, now=0.5)

        body, content_type = Telemetry.scrape()
        text = body.decode("utf-8")

        self.assertIn("text/plain", content_type)
        self.assertIn('basekit_fn_calls_total{name="metrics-export",result="accepted"} 1.0', text)
        self.assertIn('basekit_fn_calls_total{name="metrics-export",result="throttled"} 1.0', text)
        self.assertIn("basekit_loading_scopes_active", text)

    async def test_loading_gauge_counts_scopes_across_signals(self) -> None:
        def active() -> float:
            return REGISTRY.get_sample_value("basekit_loading_scopes_active")

        baseline = active()
        first = LoadingSignal(telemetry=Telemetry())
        second = LoadingSignal(telemetry=Telemetry())

        async with first.scope():
            async with second.scope():
                self.assertEqual(active(), baseline + 2)
            self.assertEqual(active(), baseline + 1)

        self.assertEqual(active(), baseline)
