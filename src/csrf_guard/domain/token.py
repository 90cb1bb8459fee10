"""Token records and validation outcomes shared by both token sides."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

PUBLIC_REJECTION_MESSAGE = "Invalid or expired CSRF token"


class ValidationReason(str, Enum):
    """Why a presented token was rejected."""

    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"
    ALREADY_USED = "already used"


_DETAILS: dict[ValidationReason, str] = {
    ValidationReason.MISSING: "Token is missing",
    ValidationReason.INVALID: "Token is invalid",
    ValidationReason.EXPIRED: "Token has expired",
    ValidationReason.ALREADY_USED: "Token has already been used",
}


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """Snapshot of one stored token.

    ``key`` is the store's lookup key: the digest of the token on the issuing
    side and the token itself on the receiving side. ``token`` carries the
    plaintext only on the issuing side.
    """

    key: str
    created_at: datetime
    expires_at: datetime
    used: bool = False
    token: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key must be non-empty")
        if self.expires_at < self.created_at:
            raise ValueError("expires_at must not precede created_at")

    def is_expired(self, now: datetime) -> bool:
        """Return True once ``now`` is past the record's expiry."""
        return now > self.expires_at

    def is_sweepable(self, now: datetime) -> bool:
        """Return True when the sweeper may evict the record."""
        return self.expires_at <= now

    def mark_used(self, now: datetime, grace: timedelta) -> TokenRecord:
        """Return a consumed copy that lingers for ``grace`` before eviction."""
        if self.used:
            raise ValueError("token record is already used")
        # A clock stepping backwards must not push expiry before creation.
        expires_at = max(now + grace, self.created_at)
        return replace(self, used=True, expires_at=expires_at)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a presented token.

    ``reason`` and ``detail`` are meant for internal callers and logs only.
    Anything echoed back to an unauthenticated caller should use
    ``public_message``, which does not reveal which check failed.
    """

    valid: bool
    reason: ValidationReason | None = None

    def __post_init__(self) -> None:
        if self.valid and self.reason is not None:
            raise ValueError("valid results cannot carry a rejection reason")
        if not self.valid and self.reason is None:
            raise ValueError("rejected results require a reason")

    @classmethod
    def accepted(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def rejected(cls, reason: ValidationReason) -> ValidationResult:
        return cls(valid=False, reason=reason)

    @property
    def detail(self) -> str | None:
        """Internal, human-readable rejection message."""
        if self.reason is None:
            return None
        return _DETAILS[self.reason]

    @property
    def public_message(self) -> str | None:
        """Generic rejection message safe to return to any caller."""
        if self.valid:
            return None
        return PUBLIC_REJECTION_MESSAGE


__all__ = [
    "PUBLIC_REJECTION_MESSAGE",
    "TokenRecord",
    "ValidationReason",
    "ValidationResult",
]
