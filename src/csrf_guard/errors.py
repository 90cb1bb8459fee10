"""Exceptions raised by the CSRF token lifecycle."""

from __future__ import annotations


class CsrfGuardError(Exception):
    """Base class for csrf_guard failures."""


class EntropySourceUnavailable(CsrfGuardError):
    """Raised when the secure random source cannot be read while minting."""


class UnsupportedOperationError(CsrfGuardError):
    """Raised when a guard is asked for an operation its side cannot perform."""


__all__ = [
    "CsrfGuardError",
    "EntropySourceUnavailable",
    "UnsupportedOperationError",
]
