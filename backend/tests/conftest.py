"""Shared test fixtures."""

import os

# Keep the app's own engine off the filesystem while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, datetime, timedelta
from decimal import Decimal

from app.database import Base, get_db
from app.main import app
from app.models.transaction import Transaction, TransactionKind
from app.models.wallet import Wallet, Instrument
from app.schemas.transaction import TransactionRecord

OWNER = "5511999990000"
TODAY = date(2024, 3, 31)


def make_record(**overrides) -> TransactionRecord:
    """Build a TransactionRecord with sensible defaults."""
    values = {
        "id": None,
        "owner": OWNER,
        "description": "mercado",
        "amount": Decimal("10.00"),
        "category": "alimentacao",
        "kind": "expense",
        "instrument": "debit",
        "wallet": None,
        "timestamp": "2024-03-15T12:00:00",
    }
    values.update(overrides)
    return TransactionRecord(**values)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def credit_wallet(db_session):
    """Create a credit card wallet."""
    wallet = Wallet(owner=OWNER, name="Nubank", wallet_kind=Instrument.credit)
    db_session.add(wallet)
    db_session.commit()
    db_session.refresh(wallet)
    return wallet


@pytest.fixture
def sample_transactions(db_session, credit_wallet):
    """A small month of activity for one owner, plus one row for somebody else."""
    now = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0)
    rows = [
        Transaction(
            owner=OWNER, description="Salario", amount=Decimal("3000.00"),
            category="salario", kind=TransactionKind.income, instrument=Instrument.debit,
            timestamp=(now - timedelta(days=2)).isoformat(),
        ),
        Transaction(
            owner=OWNER, description="Supermercado", amount=Decimal("250.00"),
            category="alimentacao", kind=TransactionKind.expense, instrument=Instrument.debit,
            timestamp=(now - timedelta(days=1)).isoformat(),
        ),
        Transaction(
            owner=OWNER, description="Uber", amount=Decimal("40.00"),
            category="transporte", kind=TransactionKind.expense, instrument=Instrument.debit,
            wallet_id=credit_wallet.id, timestamp=now.isoformat(),
        ),
        Transaction(
            owner=OWNER, description="Aluguel", amount=Decimal("1200.00"),
            category="moradia", kind=TransactionKind.expense, instrument=Instrument.debit,
            timestamp=(now - timedelta(days=40)).isoformat(),
        ),
        Transaction(
            owner=OWNER, description="Registro sem data", amount=Decimal("15.00"),
            category=None, kind=TransactionKind.expense, instrument=None,
            timestamp="ontem a noite",
        ),
        Transaction(
            owner="5511888880000", description="Outro usuario", amount=Decimal("99.00"),
            category="lazer", kind=TransactionKind.expense, instrument=Instrument.debit,
            timestamp=now.isoformat(),
        ),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows
