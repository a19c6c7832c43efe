import re
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.core.constants import (
    AMOUNT_QUANTUM,
    CARD_ID_MAX_LENGTH,
    CATEGORY_MAX_LENGTH,
    MAX_AMOUNT,
    MAX_SIGNAL_STRENGTH,
    MERCHANT_NAME_MAX_LENGTH,
    MIN_SIGNAL_STRENGTH,
    TERMINAL_ID_MAX_LENGTH,
    TransactionStatus,
    TransactionType,
)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_money(value: Decimal) -> str:
    """Render a money value with exactly two fractional digits."""
    return str(Decimal(value).quantize(AMOUNT_QUANTUM))


class NfcData(BaseModel):
    """Contactless tap metadata. Its presence marks a transaction as NFC-originated."""

    model_config = ConfigDict(extra="forbid")

    card_id: str = Field(max_length=CARD_ID_MAX_LENGTH)
    terminal_id: str = Field(max_length=TERMINAL_ID_MAX_LENGTH)
    signal_strength: int = Field(ge=MIN_SIGNAL_STRENGTH, le=MAX_SIGNAL_STRENGTH)


class TransactionCreate(BaseModel):
    """Schema for creating a transaction."""

    amount: Decimal
    currency: str
    type: TransactionType
    status: TransactionStatus
    merchant_name: str | None = Field(default=None, max_length=MERCHANT_NAME_MAX_LENGTH)
    category: str | None = Field(default=None, max_length=CATEGORY_MAX_LENGTH)
    nfc_data: NfcData | None = None
    transaction_date: datetime

    @field_validator("amount")
    def validate_amount(cls, v):
        """Validate amount is positive, bounded and has max 2 decimal places."""
        if v <= 0:
            raise ValueError("Amount must be positive")
        if v > MAX_AMOUNT:
            raise ValueError(f"Amount must not exceed {MAX_AMOUNT}")
        if v != v.quantize(AMOUNT_QUANTUM):
            raise ValueError("Amount must have at most 2 decimal places")
        return v.quantize(AMOUNT_QUANTUM)

    @field_validator("currency")
    def validate_currency(cls, v):
        """Validate currency is a 3-letter code."""
        v = v.upper()  # Enforce uppercase

        if not re.fullmatch(r"[A-Z]{3}", v):
            raise ValueError("Currency must be a 3-letter code")

        return v

    @field_validator("transaction_date")
    def normalize_transaction_date(cls, v):
        return as_utc(v)


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    model_config = {"from_attributes": True}

    id: int
    transaction_id: str
    amount: Decimal
    currency: str
    type: str
    status: str
    merchant_name: str | None
    category: str | None
    nfc_data: NfcData | None
    transaction_date: datetime
    created_at: datetime | None
    updated_at: datetime | None

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> str:
        """Serialize as a decimal string so no precision is lost."""
        return format_money(amount)

    @field_serializer("transaction_date", "created_at", "updated_at")
    def serialize_timestamp(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return as_utc(value).isoformat()


class TransactionPage(BaseModel):
    """Paginated list of transactions."""

    data: list[TransactionResponse]
    current_page: int
    last_page: int
    per_page: int
    total: int


class TransactionSummary(BaseModel):
    """Aggregated counters and sums over a date window."""

    start_date: datetime
    end_date: datetime
    total_transactions: int
    total_amount: Decimal
    credit_amount: Decimal
    debit_amount: Decimal
    nfc_transactions: int
    pending_transactions: int
    completed_transactions: int
    failed_transactions: int

    @field_serializer("total_amount", "credit_amount", "debit_amount")
    def serialize_money(self, value: Decimal) -> str:
        return format_money(value)

    @field_serializer("start_date", "end_date")
    def serialize_bound(self, value: datetime) -> str:
        return as_utc(value).isoformat()
