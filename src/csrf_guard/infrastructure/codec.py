"""Token minting and digesting."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from hashlib import sha256

from csrf_guard.errors import EntropySourceUnavailable

TOKEN_BYTES = 32


class TokenCodec:
    """Mints opaque random tokens and derives their storage digests."""

    def __init__(
        self,
        *,
        entropy: Callable[[int], bytes] | None = None,
        token_bytes: int = TOKEN_BYTES,
    ) -> None:
        if token_bytes < TOKEN_BYTES:
            raise ValueError(f"token_bytes must be at least {TOKEN_BYTES}")
        self._entropy = entropy or secrets.token_bytes
        self._token_bytes = token_bytes

    def mint(self) -> str:
        """Return a new hex token drawn from the secure random source."""
        try:
            raw = self._entropy(self._token_bytes)
        except (OSError, NotImplementedError) as exc:
            raise EntropySourceUnavailable("secure random source unavailable") from exc
        if len(raw) != self._token_bytes:
            raise EntropySourceUnavailable(
                f"random source returned {len(raw)} bytes, expected {self._token_bytes}",
            )
        return raw.hex()

    def digest(self, token: str) -> str:
        """Return the SHA-256 hex digest used as the issuing-side key."""
        return sha256(token.encode("utf-8")).hexdigest()


__all__ = ["TOKEN_BYTES", "TokenCodec"]
