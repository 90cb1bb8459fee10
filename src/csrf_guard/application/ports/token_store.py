"""Port describing CSRF token state access."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol

from csrf_guard.domain.token import TokenRecord


class TokenStorePort(Protocol):
    """Owns token records for one side; keys are derived from the token."""

    def put(self, token: str, expires_at: datetime, now: datetime) -> TokenRecord:
        """Insert or replace the record for ``token`` as unused, created at ``now``."""

    def get(self, token: str) -> TokenRecord | None:
        """Return the record for ``token``, if present."""

    def mark_used(self, token: str, grace: timedelta, now: datetime) -> bool:
        """Consume ``token`` at ``now``; return ``True`` only for the call that consumed it."""

    def delete(self, token: str) -> None:
        """Remove the record for ``token``, if present."""

    def discard(self, token: str, record: TokenRecord) -> bool:
        """Remove ``token`` only while ``record`` is still the stored record."""

    def sweep(self, now: datetime) -> int:
        """Evict records expired at ``now`` and return how many were removed."""

    def first_unused(self, now: datetime) -> TokenRecord | None:
        """Return the newest live record that has not been consumed."""

    def __len__(self) -> int:
        """Return the number of records currently held."""


__all__ = ["TokenStorePort"]
