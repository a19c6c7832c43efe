"""Shared pytest fixtures for all tests."""
import itertools
import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ===== DATABASE CONFIGURATION =====
# Must be set before the app modules read their settings.

TEST_DIR = tempfile.mkdtemp(prefix="transaction_ledger_test_")
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite+aiosqlite:///{TEST_DIR}/transactions_test.db"
)
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("LOG_DIR", os.path.join(TEST_DIR, "logs"))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.transaction import Transaction  # noqa: E402

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

API = "/api/v1/transactions"


# ===== DEPENDENCY OVERRIDE =====

async def override_get_db():
    async with TestSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


# ===== FUNCTION-SCOPED SETUP / CLEANUP =====

@pytest.fixture(scope="function", autouse=True)
async def setup_database():
    """Create tables before each test and clean them afterwards."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with TestSessionLocal() as session:
        async with session.begin():
            await session.execute(Transaction.__table__.delete())


# ===== SHARED FIXTURES =====

@pytest.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    """Get database session for direct DB access."""
    async with TestSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


class TransactionFactory:
    """Insert transactions straight through the ORM with sensible defaults."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.sequence = itertools.count(1)

    def defaults(self) -> dict:
        n = next(self.sequence)
        return {
            "transaction_id": f"TXN_test{n:06d}_1700000000",
            "amount": Decimal("10.00"),
            "currency": "USD",
            "type": "debit",
            "status": "completed",
            "merchant_name": f"Merchant {n}",
            "category": "shopping",
            "nfc_data": None,
            "transaction_date": datetime.now(timezone.utc) - timedelta(minutes=n),
        }

    async def create(self, **overrides) -> Transaction:
        values = self.defaults()
        values.update(overrides)
        transaction = Transaction(**values)
        self.session.add(transaction)
        await self.session.commit()
        await self.session.refresh(transaction)
        return transaction

    async def create_batch(self, count: int, **overrides) -> list[Transaction]:
        return [await self.create(**overrides) for _ in range(count)]


@pytest.fixture
def transaction_factory(db_session: AsyncSession) -> TransactionFactory:
    return TransactionFactory(db_session)


@pytest.fixture
def nfc_data() -> dict:
    return {
        "card_id": "CARD_123456789",
        "terminal_id": "TERM_987654",
        "signal_strength": -45,
    }


@pytest.fixture
def transaction_payload() -> dict:
    """A valid POST body."""
    return {
        "amount": 99.99,
        "currency": "USD",
        "type": "debit",
        "status": "completed",
        "merchant_name": "Test Merchant",
        "category": "food",
        "transaction_date": datetime.now(timezone.utc).isoformat(),
    }
