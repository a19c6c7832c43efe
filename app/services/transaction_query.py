"""Composable filters over the transactions table.

Each filter is an independent predicate; ``TransactionQuery`` joins whatever
predicates were added with AND, then applies ordering and pagination.
"""
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.transaction import Transaction


def date_range(start: datetime, end: datetime) -> ColumnElement[bool]:
    """Inclusive bounds on transaction_date."""
    return Transaction.transaction_date.between(start, end)


def of_type(transaction_type: str) -> ColumnElement[bool]:
    return Transaction.type == transaction_type


def with_status(status: str) -> ColumnElement[bool]:
    return Transaction.status == status


def with_nfc() -> ColumnElement[bool]:
    return Transaction.nfc_data.is_not(None)


def search(term: str) -> ColumnElement[bool]:
    """Case-insensitive substring match on merchant name, transaction id or category."""
    return or_(
        Transaction.merchant_name.icontains(term, autoescape=True),
        Transaction.transaction_id.icontains(term, autoescape=True),
        Transaction.category.icontains(term, autoescape=True),
    )


# Newest first; id breaks ties between equal transaction dates
ORDERING = (Transaction.transaction_date.desc(), Transaction.id.desc())


@dataclass
class Page:
    items: list[Transaction]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)


class TransactionQuery:
    """Builder collecting filter predicates for a transactions query."""

    def __init__(self) -> None:
        self.predicates: list[ColumnElement[bool]] = []

    def where(self, predicate: ColumnElement[bool]) -> "TransactionQuery":
        self.predicates.append(predicate)
        return self

    def between(self, start: datetime, end: datetime) -> "TransactionQuery":
        return self.where(date_range(start, end))

    def of_type(self, transaction_type: str) -> "TransactionQuery":
        return self.where(of_type(transaction_type))

    def with_status(self, status: str) -> "TransactionQuery":
        return self.where(with_status(status))

    def with_nfc(self) -> "TransactionQuery":
        return self.where(with_nfc())

    def search(self, term: str) -> "TransactionQuery":
        return self.where(search(term))

    def statement(self) -> Select:
        """SELECT over the filtered rows, newest first."""
        return select(Transaction).where(*self.predicates).order_by(*ORDERING)

    async def count(self, db: AsyncSession) -> int:
        count_query = (
            select(func.count()).select_from(Transaction).where(*self.predicates)
        )
        result = await db.execute(count_query)
        return result.scalar_one()

    async def fetch(self, db: AsyncSession, limit: int | None = None) -> list[Transaction]:
        query = self.statement()
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def paginate(self, db: AsyncSession, page: int, per_page: int) -> Page:
        """Return one page of the filtered rows together with the total row count."""
        total = await self.count(db)

        offset = (page - 1) * per_page
        result = await db.execute(self.statement().limit(per_page).offset(offset))
        items = list(result.scalars().all())

        return Page(items=items, total=total, page=page, per_page=per_page)
