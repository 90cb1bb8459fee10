"""In-memory CSRF token lifecycle: issue, validate, consume and sweep."""

from csrf_guard.domain.token import TokenRecord, ValidationReason, ValidationResult
from csrf_guard.errors import CsrfGuardError, EntropySourceUnavailable, UnsupportedOperationError
from csrf_guard.runtime.bootstrap import CsrfGuard, build_issuing_guard, build_receiving_guard

__all__ = [
    "CsrfGuard",
    "CsrfGuardError",
    "EntropySourceUnavailable",
    "TokenRecord",
    "UnsupportedOperationError",
    "ValidationReason",
    "ValidationResult",
    "build_issuing_guard",
    "build_receiving_guard",
]
