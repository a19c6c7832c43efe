from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.sql import func

from app.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(64), nullable=False, unique=True)  # TXN_<hex>_<epoch>
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)  # 3-letter uppercase code
    type = Column(String(10), nullable=False)
    status = Column(String(10), nullable=False)
    merchant_name = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    # none_as_null stores SQL NULL (not JSON 'null') so IS NOT NULL selects NFC rows
    nfc_data = Column(JSON(none_as_null=True), nullable=True)
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0 AND amount <= 999999.99", name="ck_transactions_amount"),
        CheckConstraint("type IN ('debit', 'credit')", name="ck_transactions_type"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')", name="ck_transactions_status"
        ),
        Index("ix_transactions_transaction_date_status", "transaction_date", "status"),
        Index("ix_transactions_type", "type"),
        Index("ix_transactions_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, transaction_id={self.transaction_id}, amount={self.amount})>"
