from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from csrf_guard.infrastructure.state.token_store import IssuingTokenStore, ReceivingTokenStore
from csrf_guard.runtime.sweeper import DEFAULT_SWEEP_INTERVAL, TokenSweeper


class SignallingStore(ReceivingTokenStore):
    """Receiving store that signals each completed sweep."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.swept = threading.Event()

    def sweep(self, now: datetime) -> int:
        removed = super().sweep(now)
        self.swept.set()
        return removed


class ExplodingStore(ReceivingTokenStore):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.calls = 0
        self.retried = threading.Event()

    def sweep(self, now: datetime) -> int:
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("sweep failed")
        self.retried.set()
        return 0


def test_sweep_now_evicts_expired_tokens_and_counts(clock) -> None:
    store = IssuingTokenStore()
    expired = [f"token-{i}" for i in range(5)]
    for token in expired:
        store.put(token, clock() + timedelta(minutes=5), clock())
    store.put("live", clock() + timedelta(hours=1), clock())
    sweeper = TokenSweeper(store, clock=clock)

    clock.advance(minutes=6)
    removed = sweeper.sweep_now()

    assert removed == 5
    assert all(store.get(token) is None for token in expired)
    assert store.get("live") is not None
    assert sweeper.last_removed == 5
    assert sweeper.total_removed == 5


def test_default_interval_is_ten_minutes(clock) -> None:
    sweeper = TokenSweeper(ReceivingTokenStore(), clock=clock)

    assert DEFAULT_SWEEP_INTERVAL == 600.0
    assert sweeper.poll_interval == DEFAULT_SWEEP_INTERVAL


def test_background_sweeper_runs_and_stops(clock) -> None:
    store = SignallingStore()
    store.put("stale", clock() + timedelta(minutes=1), clock())
    clock.advance(minutes=2)
    sweeper = TokenSweeper(store, clock=clock, interval_seconds=0.01)

    sweeper.start()
    sweeper.start()
    try:
        assert store.swept.wait(timeout=2.0)
    finally:
        sweeper.stop(timeout=2.0)

    assert sweeper.running is False
    assert store.get("stale") is None


def test_stop_interrupts_long_interval(clock) -> None:
    sweeper = TokenSweeper(ReceivingTokenStore(), clock=clock)

    sweeper.start()
    assert sweeper.running is True
    sweeper.stop(timeout=2.0)

    assert sweeper.running is False


def test_stopping_sweeper_keeps_live_tokens(clock) -> None:
    store = ReceivingTokenStore()
    store.put("abc123", clock() + timedelta(hours=1), clock())
    sweeper = TokenSweeper(store, clock=clock, interval_seconds=0.01)

    sweeper.start()
    sweeper.stop(timeout=2.0)

    assert store.get("abc123") is not None


def test_failed_tick_is_logged_and_loop_continues(clock, caplog) -> None:
    store = ExplodingStore()
    sweeper = TokenSweeper(store, clock=clock, interval_seconds=0.01)

    sweeper.start()
    try:
        assert store.retried.wait(timeout=2.0)
    finally:
        sweeper.stop(timeout=2.0)

    assert sweeper.failed_ticks == 1
    assert "worker tick failed" in caplog.text


def test_interval_must_be_positive(clock) -> None:
    with pytest.raises(ValueError):
        TokenSweeper(ReceivingTokenStore(), clock=clock, interval_seconds=0)
