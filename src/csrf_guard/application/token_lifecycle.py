"""Issue, validate and consume CSRF tokens against a token store."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from csrf_guard.application.ports.token_store import TokenStorePort
from csrf_guard.clock import utc_now
from csrf_guard.domain.token import ValidationReason, ValidationResult
from csrf_guard.infrastructure.codec import TokenCodec

DEFAULT_TTL_MINUTES = 60
DEFAULT_CONSUME_GRACE = timedelta(milliseconds=5000)

logger = logging.getLogger("csrf_guard.lifecycle")


class TokenLifecycle:
    """Validation policy shared by the issuing and receiving sides.

    Key derivation belongs to the store; the policy only decides expiry,
    single-use consumption and the post-consumption grace window.
    """

    side = "shared"

    def __init__(
        self,
        store: TokenStorePort,
        *,
        clock: Callable[[], datetime] | None = None,
        default_ttl_minutes: float = DEFAULT_TTL_MINUTES,
        consume_grace: timedelta = DEFAULT_CONSUME_GRACE,
    ) -> None:
        if default_ttl_minutes <= 0:
            raise ValueError("default_ttl_minutes must be positive")
        if consume_grace < timedelta(0):
            raise ValueError("consume_grace must be non-negative")
        self._store = store
        self._clock = clock or utc_now
        self._default_ttl_minutes = default_ttl_minutes
        self._consume_grace = consume_grace

    @property
    def store(self) -> TokenStorePort:
        return self._store

    def validate(self, token: object, *, consume: bool = True) -> ValidationResult:
        """Check ``token`` and, unless ``consume`` is False, mark it used."""
        if not isinstance(token, str) or not token:
            return self._reject(ValidationReason.MISSING)

        record = self._store.get(token)
        if record is None:
            return self._reject(ValidationReason.INVALID)

        now = self._clock()
        if record.is_expired(now):
            # A concurrent accept may have replaced the record since the read.
            self._store.discard(token, record)
            return self._reject(ValidationReason.EXPIRED)

        # Used records stay until their grace window lapses so every replay
        # inside it reports the same reason.
        if record.used:
            return self._reject(ValidationReason.ALREADY_USED)

        # Losing the compare-and-set means a concurrent caller consumed it first.
        if consume and not self._store.mark_used(token, self._consume_grace, now):
            return self._reject(ValidationReason.ALREADY_USED)

        return ValidationResult.accepted()

    def _store_token(self, token: str, duration_minutes: float | None) -> datetime:
        minutes = self._default_ttl_minutes if duration_minutes is None else duration_minutes
        if minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        now = self._clock()
        expires_at = now + timedelta(minutes=minutes)
        self._store.put(token, expires_at, now)
        return expires_at

    def _reject(self, reason: ValidationReason) -> ValidationResult:
        logger.info(
            "csrf token rejected",
            extra={"data": {"side": self.side, "reason": reason.value}},
        )
        return ValidationResult.rejected(reason)


class TokenIssuer(TokenLifecycle):
    """Issuing side: mints tokens and stores them under their digest."""

    side = "issuer"

    def __init__(
        self,
        store: TokenStorePort,
        *,
        codec: TokenCodec | None = None,
        clock: Callable[[], datetime] | None = None,
        default_ttl_minutes: float = DEFAULT_TTL_MINUTES,
        consume_grace: timedelta = DEFAULT_CONSUME_GRACE,
    ) -> None:
        super().__init__(
            store,
            clock=clock,
            default_ttl_minutes=default_ttl_minutes,
            consume_grace=consume_grace,
        )
        self._codec = codec or TokenCodec()

    def issue(self, duration_minutes: float | None = None) -> str:
        """Mint, record and return a new plaintext token."""
        token = self._codec.mint()
        expires_at = self._store_token(token, duration_minutes)
        logger.debug(
            "csrf token issued",
            extra={"data": {"side": self.side, "expires_at": expires_at.isoformat()}},
        )
        return token


class TokenReceiver(TokenLifecycle):
    """Receiving side: holds tokens handed over by a remote issuer."""

    side = "receiver"

    def accept(self, token: object, duration_minutes: float | None = None) -> None:
        """Store a token received from the issuer; empty input is ignored."""
        if not isinstance(token, str) or not token:
            logger.debug("ignoring empty csrf token from issuer")
            return
        self._store_token(token, duration_minutes)

    def current_token(self) -> str | None:
        """Return the newest live, unused token to attach to the next request."""
        record = self._store.first_unused(self._clock())
        if record is None:
            return None
        return record.token if record.token is not None else record.key


__all__ = [
    "DEFAULT_CONSUME_GRACE",
    "DEFAULT_TTL_MINUTES",
    "TokenIssuer",
    "TokenLifecycle",
    "TokenReceiver",
]
