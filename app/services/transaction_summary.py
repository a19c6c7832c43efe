"""Summary counters and sums over a window of transaction dates."""
import calendar
from datetime import datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import ColumnElement, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import AMOUNT_QUANTUM, TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.schemas.transaction import TransactionSummary
from app.services import transaction_query


def current_month_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """First and last instant of the calendar month containing ``now`` (UTC)."""
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime.combine(now.date().replace(day=1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(now.date().replace(day=last_day), time.max, tzinfo=timezone.utc)
    return start, end


def to_money(value) -> Decimal:
    """Round a SUM() result to cents; NULL sums (no rows) become 0.00."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def _count_where(predicate: ColumnElement[bool]):
    return func.coalesce(func.sum(case((predicate, 1), else_=0)), 0)


def _sum_where(predicate: ColumnElement[bool]):
    return func.sum(case((predicate, Transaction.amount), else_=None))


async def summarize(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
) -> TransactionSummary:
    """
    Aggregate transactions whose transaction_date falls in [start, end].

    Args:
        db: Database session
        start: Lower bound, defaults to the start of the current UTC month
        end: Upper bound, defaults to the end of the current UTC month

    Returns:
        TransactionSummary with counts and amounts for the window
    """
    month_start, month_end = current_month_window()
    start = start or month_start
    end = end or month_end

    is_credit = transaction_query.of_type(TransactionType.CREDIT.value)
    is_debit = transaction_query.of_type(TransactionType.DEBIT.value)

    query = select(
        func.count(Transaction.id).label("total_transactions"),
        func.sum(Transaction.amount).label("total_amount"),
        _sum_where(is_credit).label("credit_amount"),
        _sum_where(is_debit).label("debit_amount"),
        _count_where(transaction_query.with_nfc()).label("nfc_transactions"),
        _count_where(
            transaction_query.with_status(TransactionStatus.PENDING.value)
        ).label("pending_transactions"),
        _count_where(
            transaction_query.with_status(TransactionStatus.COMPLETED.value)
        ).label("completed_transactions"),
        _count_where(
            transaction_query.with_status(TransactionStatus.FAILED.value)
        ).label("failed_transactions"),
    ).where(transaction_query.date_range(start, end))

    result = await db.execute(query)
    row = result.one()

    return TransactionSummary(
        start_date=start,
        end_date=end,
        total_transactions=row.total_transactions,
        total_amount=to_money(row.total_amount),
        credit_amount=to_money(row.credit_amount),
        debit_amount=to_money(row.debit_amount),
        nfc_transactions=int(row.nfc_transactions),
        pending_transactions=int(row.pending_transactions),
        completed_transactions=int(row.completed_transactions),
        failed_transactions=int(row.failed_transactions),
    )
