from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from csrf_guard.domain.token import (
    PUBLIC_REJECTION_MESSAGE,
    TokenRecord,
    ValidationReason,
    ValidationResult,
)

T0 = datetime(2025, 10, 17, 12, tzinfo=UTC)


def make_record(**overrides: object) -> TokenRecord:
    fields: dict[str, object] = {
        "key": "digest",
        "created_at": T0,
        "expires_at": T0 + timedelta(hours=1),
    }
    fields.update(overrides)
    return TokenRecord(**fields)  # type: ignore[arg-type]


def test_record_rejects_expiry_before_creation() -> None:
    with pytest.raises(ValueError):
        make_record(expires_at=T0 - timedelta(seconds=1))


def test_record_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        make_record(key="")


def test_expiry_is_strict_but_sweep_is_inclusive() -> None:
    record = make_record()

    assert record.is_expired(record.expires_at) is False
    assert record.is_sweepable(record.expires_at) is True
    assert record.is_expired(record.expires_at + timedelta(microseconds=1)) is True


def test_mark_used_shortens_expiry_to_grace_window() -> None:
    record = make_record()
    consumed_at = T0 + timedelta(minutes=30)

    used = record.mark_used(consumed_at, timedelta(seconds=5))

    assert used.used is True
    assert used.expires_at == consumed_at + timedelta(seconds=5)
    assert used.created_at == record.created_at
    assert record.used is False


def test_mark_used_is_one_way() -> None:
    used = make_record().mark_used(T0, timedelta(seconds=5))

    with pytest.raises(ValueError):
        used.mark_used(T0, timedelta(seconds=5))


def test_mark_used_never_expires_before_creation() -> None:
    record = make_record()

    used = record.mark_used(T0 - timedelta(minutes=1), timedelta(seconds=5))

    assert used.expires_at == record.created_at


def test_rejected_result_hides_reason_from_public_message() -> None:
    expired = ValidationResult.rejected(ValidationReason.EXPIRED)
    replayed = ValidationResult.rejected(ValidationReason.ALREADY_USED)

    assert expired.detail == "Token has expired"
    assert replayed.detail == "Token has already been used"
    assert expired.public_message == replayed.public_message == PUBLIC_REJECTION_MESSAGE


def test_accepted_result_has_no_messages() -> None:
    result = ValidationResult.accepted()

    assert result.valid is True
    assert result.reason is None
    assert result.detail is None
    assert result.public_message is None


def test_result_consistency_is_enforced() -> None:
    with pytest.raises(ValueError):
        ValidationResult(valid=True, reason=ValidationReason.INVALID)
    with pytest.raises(ValueError):
        ValidationResult(valid=False)


def test_reason_values_match_wire_strings() -> None:
    assert [reason.value for reason in ValidationReason] == [
        "missing",
        "invalid",
        "expired",
        "already used",
    ]
