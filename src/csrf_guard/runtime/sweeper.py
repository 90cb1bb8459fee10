"""Background worker that evicts expired CSRF tokens."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from opentelemetry import trace

from csrf_guard.application.ports.token_store import TokenStorePort
from csrf_guard.clock import utc_now
from csrf_guard.runtime.base_worker import BaseWorker

# Ten minutes between sweeps.
DEFAULT_SWEEP_INTERVAL = 600.0

tracer = trace.get_tracer("csrf_guard.sweeper")


class TokenSweeper(BaseWorker):
    """Periodically removes expired records from one token store.

    Stopping the sweeper only ends garbage collection; tokens already in the
    store stay valid until they expire or are consumed.
    """

    worker_name = "csrf-token-sweeper"
    logger_name = "csrf_guard.sweeper"
    default_poll_interval = DEFAULT_SWEEP_INTERVAL

    def __init__(
        self,
        store: TokenStorePort,
        *,
        clock: Callable[[], datetime] | None = None,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        super().__init__(poll_interval=interval_seconds)
        self._store = store
        self._clock = clock or utc_now
        self.last_removed = 0
        self.total_removed = 0
        self.failed_ticks = 0

    def sweep_now(self) -> int:
        """Run one sweep pass synchronously and return the evicted count."""
        with tracer.start_as_current_span("csrf.sweep") as span:
            removed = self._store.sweep(self._clock())
            remaining = len(self._store)
            span.set_attribute("csrf.removed", removed)
            span.set_attribute("csrf.remaining", remaining)
        self.last_removed = removed
        self.total_removed += removed
        self._logger.debug(
            "csrf sweep complete",
            extra={"data": {"removed": removed, "remaining": remaining}},
        )
        return removed

    def _tick(self) -> None:
        self.sweep_now()

    def _on_error(self) -> None:
        self.failed_ticks += 1


__all__ = ["DEFAULT_SWEEP_INTERVAL", "TokenSweeper"]
