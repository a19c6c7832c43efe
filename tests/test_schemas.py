import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.core.dependencies import parse_date_param
from app.schemas.transaction import TransactionCreate, TransactionSummary
from app.services.transaction_ids import generate_transaction_id


def make_payload(**overrides) -> dict:
    payload = {
        "amount": "42.50",
        "currency": "usd",
        "type": "credit",
        "status": "pending",
        "transaction_date": "2025-06-15T10:30:00+02:00",
    }
    payload.update(overrides)
    return payload


def error_fields(exc: ValidationError) -> set[str]:
    return {".".join(str(part) for part in error["loc"]) for error in exc.errors()}


def test_transaction_create_normalizes_values():
    transaction = TransactionCreate(**make_payload())

    assert transaction.amount == Decimal("42.50")
    assert transaction.currency == "USD"
    assert transaction.transaction_date == datetime(2025, 6, 15, 8, 30, tzinfo=timezone.utc)
    assert transaction.nfc_data is None


def test_transaction_create_naive_date_is_utc():
    transaction = TransactionCreate(**make_payload(transaction_date="2025-06-15T10:30:00"))

    assert transaction.transaction_date.tzinfo == timezone.utc
    assert transaction.transaction_date.hour == 10


@pytest.mark.parametrize(
    "amount, message",
    [
        ("-1", "Amount must be positive"),
        ("0", "Amount must be positive"),
        ("1000000.00", "Amount must not exceed 999999.99"),
        ("1.001", "Amount must have at most 2 decimal places"),
    ],
)
def test_transaction_create_rejects_bad_amounts(amount, message):
    with pytest.raises(ValidationError) as exc_info:
        TransactionCreate(**make_payload(amount=amount))

    assert message in str(exc_info.value)
    assert error_fields(exc_info.value) == {"amount"}


def test_transaction_create_accepts_max_amount():
    assert TransactionCreate(**make_payload(amount="999999.99")).amount == Decimal("999999.99")


def test_transaction_create_length_limits():
    with pytest.raises(ValidationError) as exc_info:
        TransactionCreate(
            **make_payload(merchant_name="m" * 256, category="c" * 101)
        )

    assert error_fields(exc_info.value) == {"merchant_name", "category"}


def test_nfc_data_must_be_complete():
    with pytest.raises(ValidationError) as exc_info:
        TransactionCreate(**make_payload(nfc_data={"card_id": "CARD_123"}))

    assert error_fields(exc_info.value) == {"nfc_data.terminal_id", "nfc_data.signal_strength"}


def test_nfc_data_rejects_unknown_keys():
    nfc_data = {
        "card_id": "CARD_123",
        "terminal_id": "TERM_456",
        "signal_strength": -100,
        "pin": "1234",
    }

    with pytest.raises(ValidationError):
        TransactionCreate(**make_payload(nfc_data=nfc_data))


@pytest.mark.parametrize("signal_strength, valid", [(-100, True), (0, True), (-101, False), (1, False)])
def test_nfc_signal_strength_bounds(signal_strength, valid):
    payload = make_payload(
        nfc_data={"card_id": "C", "terminal_id": "T", "signal_strength": signal_strength}
    )

    if valid:
        assert TransactionCreate(**payload).nfc_data.signal_strength == signal_strength
    else:
        with pytest.raises(ValidationError):
            TransactionCreate(**payload)


def test_summary_serializes_money_as_strings():
    summary = TransactionSummary(
        start_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2025, 1, 31, tzinfo=timezone.utc),
        total_transactions=1,
        total_amount=Decimal("5"),
        credit_amount=Decimal("5.00"),
        debit_amount=Decimal("0"),
        nfc_transactions=0,
        pending_transactions=1,
        completed_transactions=0,
        failed_transactions=0,
    )

    data = summary.model_dump(mode="json")

    assert data["total_amount"] == "5.00"
    assert data["debit_amount"] == "0.00"


def test_generated_transaction_ids_match_pattern_and_are_unique():
    ids = {generate_transaction_id() for _ in range(1000)}

    assert len(ids) == 1000
    for transaction_id in ids:
        assert re.match(r"^TXN_[0-9a-f]{32}_\d{10}$", transaction_id)


def test_parse_date_param_expands_plain_dates():
    start = parse_date_param("start_date", "2025-03-01")
    end = parse_date_param("end_date", "2025-03-31", end_of_day=True)

    assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 3, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_parse_date_param_converts_datetimes_to_utc():
    parsed = parse_date_param("start_date", "2025-03-01T12:00:00-05:00")

    assert parsed == datetime(2025, 3, 1, 17, tzinfo=timezone.utc)
    assert parsed.utcoffset() == timedelta(0)


def test_parse_date_param_absent_and_invalid():
    assert parse_date_param("start_date", None) is None
    assert parse_date_param("start_date", "") is None

    with pytest.raises(RequestValidationError):
        parse_date_param("start_date", "2025-13-45")
