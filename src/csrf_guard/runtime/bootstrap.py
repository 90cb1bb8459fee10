"""Runtime wiring for issuing and receiving CSRF guards."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType

from csrf_guard.application.token_lifecycle import TokenIssuer, TokenLifecycle, TokenReceiver
from csrf_guard.clock import utc_now
from csrf_guard.domain.token import ValidationResult
from csrf_guard.errors import UnsupportedOperationError
from csrf_guard.infrastructure.codec import TokenCodec
from csrf_guard.infrastructure.state.token_store import (
    InMemoryTokenStore,
    IssuingTokenStore,
    ReceivingTokenStore,
)
from csrf_guard.runtime.settings import CsrfSettings
from csrf_guard.runtime.sweeper import TokenSweeper

logger = logging.getLogger("csrf_guard.runtime")


@dataclass(frozen=True, slots=True)
class CsrfGuard:
    """One side's token store, policy and sweeper with an explicit lifetime.

    The host application owns the guard: call ``start()`` when it begins
    serving and ``stop()`` on shutdown, or use it as a context manager.
    """

    settings: CsrfSettings
    store: InMemoryTokenStore
    lifecycle: TokenLifecycle
    sweeper: TokenSweeper | None

    @property
    def side(self) -> str:
        return self.lifecycle.side

    def start(self) -> None:
        if self.sweeper is not None:
            self.sweeper.start()
        logger.info(
            "csrf guard started",
            extra={"data": {"side": self.side, "sweeper": self.sweeper is not None}},
        )

    def stop(self, timeout: float = 5.0) -> None:
        if self.sweeper is not None:
            self.sweeper.stop(timeout=timeout)
        logger.info("csrf guard stopped", extra={"data": {"side": self.side}})

    def __enter__(self) -> CsrfGuard:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    def issue(self, duration_minutes: float | None = None) -> str:
        """Mint a token (issuing side only)."""
        if not isinstance(self.lifecycle, TokenIssuer):
            raise UnsupportedOperationError(f"{self.side} guard cannot mint tokens")
        return self.lifecycle.issue(duration_minutes)

    def accept(self, token: object, duration_minutes: float | None = None) -> None:
        """Store a token handed over by the issuer (receiving side only)."""
        if not isinstance(self.lifecycle, TokenReceiver):
            raise UnsupportedOperationError(f"{self.side} guard does not accept tokens")
        self.lifecycle.accept(token, duration_minutes)

    def current_token(self) -> str | None:
        """Return the newest usable received token (receiving side only)."""
        if not isinstance(self.lifecycle, TokenReceiver):
            raise UnsupportedOperationError(f"{self.side} guard does not hold received tokens")
        return self.lifecycle.current_token()

    def validate(self, token: object, *, consume: bool = True) -> ValidationResult:
        return self.lifecycle.validate(token, consume=consume)


def build_issuing_guard(
    settings: CsrfSettings | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
    codec: TokenCodec | None = None,
) -> CsrfGuard:
    """Construct the issuing-side guard; the sweeper is not started yet."""
    resolved = settings or CsrfSettings.load()
    resolved_clock = clock or utc_now
    resolved_codec = codec or TokenCodec()
    store = IssuingTokenStore(
        codec=resolved_codec,
        shard_count=resolved.store_shards,
    )
    lifecycle = TokenIssuer(
        store,
        codec=resolved_codec,
        clock=resolved_clock,
        default_ttl_minutes=resolved.token_ttl_minutes,
        consume_grace=resolved.consume_grace,
    )
    return CsrfGuard(
        settings=resolved,
        store=store,
        lifecycle=lifecycle,
        sweeper=_build_sweeper(resolved, store, resolved_clock),
    )


def build_receiving_guard(
    settings: CsrfSettings | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
) -> CsrfGuard:
    """Construct the receiving-side guard; the sweeper is not started yet."""
    resolved = settings or CsrfSettings.load()
    resolved_clock = clock or utc_now
    store = ReceivingTokenStore(shard_count=resolved.store_shards)
    lifecycle = TokenReceiver(
        store,
        clock=resolved_clock,
        default_ttl_minutes=resolved.token_ttl_minutes,
        consume_grace=resolved.consume_grace,
    )
    return CsrfGuard(
        settings=resolved,
        store=store,
        lifecycle=lifecycle,
        sweeper=_build_sweeper(resolved, store, resolved_clock),
    )


def _build_sweeper(
    settings: CsrfSettings,
    store: InMemoryTokenStore,
    clock: Callable[[], datetime],
) -> TokenSweeper | None:
    if not settings.sweeper_enabled:
        return None
    return TokenSweeper(store, clock=clock, interval_seconds=settings.sweep_interval_seconds)


__all__ = ["CsrfGuard", "build_issuing_guard", "build_receiving_guard"]
