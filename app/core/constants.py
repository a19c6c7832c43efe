from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


TRANSACTION_ID_PREFIX = "TXN_"

# Amount bounds (NUMERIC(10, 2))
MAX_AMOUNT = Decimal("999999.99")
AMOUNT_QUANTUM = Decimal("0.01")

MERCHANT_NAME_MAX_LENGTH = 255
CATEGORY_MAX_LENGTH = 100
CARD_ID_MAX_LENGTH = 100
TERMINAL_ID_MAX_LENGTH = 50
MIN_SIGNAL_STRENGTH = -100
MAX_SIGNAL_STRENGTH = 0
