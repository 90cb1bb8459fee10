"""In-memory implementations of the token store port."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from threading import Lock

from csrf_guard.application.ports.token_store import TokenStorePort
from csrf_guard.domain.token import TokenRecord
from csrf_guard.infrastructure.codec import TokenCodec

logger = logging.getLogger("csrf_guard.store")

DEFAULT_SHARD_COUNT = 16


class _Shard:
    __slots__ = ("lock", "records")

    def __init__(self) -> None:
        self.lock = Lock()
        self.records: dict[str, TokenRecord] = {}


class InMemoryTokenStore(TokenStorePort):
    """Sharded, lock-guarded token map for the lifetime of the process.

    Each key lives in exactly one shard and every operation on it holds that
    shard's lock, so operations on a single key are linearizable while keys in
    other shards proceed in parallel. Records are immutable and replaced
    wholesale.
    """

    side = "memory"

    def __init__(
        self,
        *,
        key_fn: Callable[[str], str],
        keep_plaintext: bool,
        shard_count: int = DEFAULT_SHARD_COUNT,
    ) -> None:
        if shard_count <= 0:
            raise ValueError("shard_count must be positive")
        self._key = key_fn
        self._keep_plaintext = keep_plaintext
        self._shards = tuple(_Shard() for _ in range(shard_count))

    def _shard(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def put(self, token: str, expires_at: datetime, now: datetime) -> TokenRecord:
        key = self._key(token)
        record = TokenRecord(
            key=key,
            created_at=now,
            expires_at=expires_at,
            token=token if self._keep_plaintext else None,
        )
        shard = self._shard(key)
        with shard.lock:
            shard.records[key] = record
        return record

    def get(self, token: str) -> TokenRecord | None:
        key = self._key(token)
        shard = self._shard(key)
        with shard.lock:
            return shard.records.get(key)

    def mark_used(self, token: str, grace: timedelta, now: datetime) -> bool:
        key = self._key(token)
        shard = self._shard(key)
        with shard.lock:
            record = shard.records.get(key)
            if record is None or record.used:
                return False
            shard.records[key] = record.mark_used(now, grace)
        return True

    def delete(self, token: str) -> None:
        key = self._key(token)
        shard = self._shard(key)
        with shard.lock:
            shard.records.pop(key, None)

    def discard(self, token: str, record: TokenRecord) -> bool:
        key = self._key(token)
        shard = self._shard(key)
        with shard.lock:
            if shard.records.get(key) is not record:
                return False
            del shard.records[key]
        return True

    def sweep(self, now: datetime) -> int:
        removed = 0
        for index, shard in enumerate(self._shards):
            with shard.lock:
                removed += self._sweep_shard(index, shard, now)
        return removed

    def _sweep_shard(self, index: int, shard: _Shard, now: datetime) -> int:
        expired: list[str] = []
        for key, record in shard.records.items():
            try:
                if record.is_sweepable(now):
                    expired.append(key)
            except Exception:
                logger.exception(
                    "skipping unreadable token record during sweep",
                    extra={"data": {"side": self.side, "shard": index}},
                )
        for key in expired:
            del shard.records[key]
        return len(expired)

    def first_unused(self, now: datetime) -> TokenRecord | None:
        newest: TokenRecord | None = None
        for shard in self._shards:
            with shard.lock:
                for record in shard.records.values():
                    if record.used or record.is_expired(now):
                        continue
                    if newest is None or record.created_at > newest.created_at:
                        newest = record
        return newest

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total


class IssuingTokenStore(InMemoryTokenStore):
    """Issuer-side store keyed by the token digest; records keep the plaintext."""

    side = "issuer"

    def __init__(
        self,
        *,
        codec: TokenCodec | None = None,
        shard_count: int = DEFAULT_SHARD_COUNT,
    ) -> None:
        resolved = codec or TokenCodec()
        super().__init__(
            key_fn=resolved.digest,
            keep_plaintext=True,
            shard_count=shard_count,
        )


class ReceivingTokenStore(InMemoryTokenStore):
    """Receiver-side store keyed by the token it was handed."""

    side = "receiver"

    def __init__(
        self,
        *,
        shard_count: int = DEFAULT_SHARD_COUNT,
    ) -> None:
        super().__init__(
            key_fn=_identity,
            keep_plaintext=False,
            shard_count=shard_count,
        )


def _identity(token: str) -> str:
    return token


__all__ = [
    "DEFAULT_SHARD_COUNT",
    "InMemoryTokenStore",
    "IssuingTokenStore",
    "ReceivingTokenStore",
]
