"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, timedelta
from decimal import Decimal
import uuid

from recurwatch.database import Base, get_db
from recurwatch.main import app
from recurwatch.models.account import Account, AccountType, CreditCard
from recurwatch.models.category import Category
from recurwatch.models.merchant_group import MerchantGroup
from recurwatch.models.transaction import Transaction, TransactionSplit, TransactionType
from recurwatch.services.detection.types import CategorySplit, LedgerTransaction


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
def sample_account(db_session):
    """Create a sample checking account."""
    account = Account(id=str(uuid.uuid4()), name="Test Checking", account_type=AccountType.checking)
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def sample_card(db_session):
    """Create a sample credit card."""
    card = CreditCard(id=str(uuid.uuid4()), name="Test Visa", credit_limit=Decimal("5000.00"))
    db_session.add(card)
    db_session.commit()
    db_session.refresh(card)
    return card


@pytest.fixture
def sample_merchant(db_session):
    """Create a sample merchant group."""
    merchant = MerchantGroup(id=str(uuid.uuid4()), display_name="Netflix")
    db_session.add(merchant)
    db_session.commit()
    db_session.refresh(merchant)
    return merchant


@pytest.fixture
def sample_category(db_session):
    """Create a user-facing category."""
    category = Category(id=str(uuid.uuid4()), name="Subscriptions")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def buffer_category(db_session):
    """Create a system buffer category."""
    category = Category(id=str(uuid.uuid4()), name="Income Buffer", is_system=True, is_buffer=True)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def add_transactions(db_session):
    """Factory inserting ledger rows: add_transactions(dates, amounts, merchant, account=..., ...)."""
    def _add(dates, amounts, merchant, account=None, card=None, category=None,
             transaction_type=TransactionType.expense):
        rows = []
        for txn_date, amount in zip(dates, amounts):
            txn = Transaction(
                id=str(uuid.uuid4()),
                date=txn_date,
                total_amount=Decimal(str(amount)),
                transaction_type=transaction_type,
                description=merchant.display_name.upper(),
                merchant_group_id=merchant.id,
                account_id=account.id if account else None,
                credit_card_id=card.id if card else None,
            )
            if category:
                txn.splits.append(
                    TransactionSplit(category_id=category.id, amount=Decimal(str(amount)))
                )
            db_session.add(txn)
            rows.append(txn)
        db_session.commit()
        return rows
    return _add


def make_txn(txn_date, amount, merchant_group_id="mg-netflix", direction=TransactionType.expense,
             account_id="acct-1", instrument_id=None, splits=(), merchant_name="Netflix",
             txn_id=None):
    """Build an in-memory ledger transaction for pipeline tests."""
    return LedgerTransaction(
        id=txn_id or str(uuid.uuid4()),
        date=txn_date,
        amount=Decimal(str(amount)),
        direction=direction,
        merchant_group_id=merchant_group_id,
        merchant_name=merchant_name,
        account_id=account_id,
        instrument_id=instrument_id,
        splits=tuple(splits),
    )


def monthly_dates(start, count, day=None):
    """Dates on the same day of month for consecutive months."""
    dates = []
    year, month = start.year, start.month
    for _ in range(count):
        dates.append(date(year, month, day or start.day))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return dates


def weekly_dates(start, count, step=7):
    return [start + timedelta(days=step * i) for i in range(count)]


@pytest.fixture
def user_split():
    return CategorySplit(category_id="cat-subscriptions")


@pytest.fixture
def system_split():
    return CategorySplit(category_id="cat-buffer", is_system=True, is_buffer=True)
