import sys

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.dependencies import DateWindow, get_date_window
from app.core.logging import app_logger
from app.database import get_db
from app.models.transaction import Transaction
from app.schemas.transaction import (
    TransactionCreate,
    TransactionPage,
    TransactionResponse,
    TransactionSummary,
)
from app.services import transaction_ids, transaction_summary
from app.services.transaction_query import TransactionQuery

router = APIRouter()

# Keeps (page - 1) * per_page within a signed 64-bit OFFSET
MAX_PAGE = sys.maxsize // settings.MAX_PER_PAGE


@router.get("", response_model=TransactionPage)
async def list_transactions(
    window: DateWindow = Depends(get_date_window),
    type: str | None = Query(None, description="debit or credit"),
    status: str | None = Query(None, description="pending, completed or failed"),
    nfc_only: bool = Query(False, description="Only transactions with NFC data"),
    search: str | None = Query(None, description="Merchant, transaction id or category"),
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number (starts at 1)"),
    per_page: int = Query(
        settings.DEFAULT_PER_PAGE,
        ge=1,
        le=settings.MAX_PER_PAGE,
        description=f"Items per page (max {settings.MAX_PER_PAGE})",
    ),
    db: AsyncSession = Depends(get_db),
):
    """
    List transactions, newest transaction_date first, with optional filters.

    - **start_date** / **end_date**: applied only when both are given (inclusive)
    - **type**, **status**: exact match
    - **nfc_only**: only NFC-originated transactions
    - **search**: case-insensitive match on merchant name, transaction id or category
    - **page** / **per_page**: pagination (default 20 per page)
    """
    query = TransactionQuery()

    if window.complete:
        query.between(window.start, window.end)
    if type:
        query.of_type(type)
    if status:
        query.with_status(status)
    if nfc_only:
        query.with_nfc()
    if search:
        query.search(search)

    result = await query.paginate(db, page=page, per_page=per_page)

    return TransactionPage(
        data=result.items,
        current_page=result.page,
        last_page=result.last_page,
        per_page=result.per_page,
        total=result.total,
    )


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Record a new transaction.

    The business identifier (transaction_id) is generated by the server.
    """
    business_id = transaction_ids.generate_transaction_id()
    new_transaction = Transaction(
        transaction_id=business_id,
        **transaction_data.model_dump(mode="json", exclude={"amount", "transaction_date"}),
        amount=transaction_data.amount,
        transaction_date=transaction_data.transaction_date,
    )

    try:
        db.add(new_transaction)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        app_logger.error(
            f"Failed to store transaction {business_id}"
        )
        raise

    await db.refresh(new_transaction)
    app_logger.info(
        f"Created transaction {new_transaction.transaction_id} "
        f"({new_transaction.type} {new_transaction.amount} {new_transaction.currency})"
    )

    return new_transaction


@router.get("/nfc/recent", response_model=list[TransactionResponse])
async def recent_nfc_transactions(db: AsyncSession = Depends(get_db)):
    """Return the most recent NFC transactions (not paginated)."""
    return await TransactionQuery().with_nfc().fetch(db, limit=settings.RECENT_NFC_LIMIT)


@router.get("/stats/summary", response_model=TransactionSummary)
async def get_transaction_summary(
    window: DateWindow = Depends(get_date_window),
    db: AsyncSession = Depends(get_db),
):
    """
    Get counts and amounts for a date window.

    Each missing bound defaults to the start or end of the current month (UTC).
    """
    return await transaction_summary.summarize(db, start=window.start, end=window.end)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single transaction by its numeric id."""
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    transaction = result.scalar_one_or_none()

    if transaction is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transaction not found"
        )

    return transaction
