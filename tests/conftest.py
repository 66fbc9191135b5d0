"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the
real one. Each test gets fresh tables; the chart of accounts,
legacy settings and an open period are opt-in fixtures.
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from auto_journal.main import app
from auto_journal.models import (
    AccountingPeriod,
    AccountType,
    AppSetting,
    Base,
    ChartAccount,
    JournalEntry,
)
from auto_journal.models.base import get_db


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


# (name, code, type, legacy setting key or None)
CHART = [
    ("cash", "1-101", AccountType.ASSET, "account_kas"),
    ("bank", "1-102", AccountType.ASSET, "account_bank"),
    ("receivable", "1-103", AccountType.ASSET, "account_piutang"),
    ("trade_receivable", "1-104", AccountType.ASSET, "account_piutang_usaha"),
    ("marketplace_receivable", "1-106", AccountType.ASSET, None),
    ("inventory", "1-201", AccountType.ASSET, "account_persediaan"),
    ("payable", "2-101", AccountType.LIABILITY, "account_hutang_supplier"),
    ("revenue", "4-101", AccountType.REVENUE, "account_penjualan"),
    ("revenue_production", "4-102", AccountType.REVENUE, "account_penjualan_produksi"),
    ("revenue_service", "4-103", AccountType.REVENUE, "account_pendapatan_jasa"),
    ("sales_return", "4-104", AccountType.REVENUE, "account_retur_penjualan"),
    ("sales_discount", "4-105", AccountType.REVENUE, "account_diskon_penjualan"),
    ("cogs", "5-101", AccountType.EXPENSE, "account_hpp"),
    ("cogs_production", "5-102", AccountType.EXPENSE, "account_hpp_production"),
    ("stock_loss", "6-101", AccountType.EXPENSE, None),
    ("marketplace_fee", "6-102", AccountType.EXPENSE, "account_biaya_admin"),
    ("stock_gain", "7-101", AccountType.REVENUE, None),
]


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    get_db is overridden so the app and the test share one
    session and the test can inspect what a request wrote.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def accounts(db_session):
    """
    A small chart of accounts plus the legacy settings that
    point at it. Returns {name: ChartAccount}.
    """
    created = {}
    for name, code, account_type, _ in CHART:
        account = ChartAccount(code=code, name=name.replace("_", " ").title(), account_type=account_type)
        db_session.add(account)
        created[name] = account
    db_session.flush()

    for name, _, _, setting_key in CHART:
        if setting_key:
            db_session.add(AppSetting(
                setting_key=setting_key,
                setting_value=str(created[name].id),
            ))
    db_session.commit()
    return created


@pytest.fixture
def open_period(db_session):
    """An open accounting period around today."""
    period = make_period(db_session, "Current", is_open=True)
    db_session.commit()
    return period


def make_period(db_session, name, is_open=True, start=None, end=None):
    today = date.today()
    period = AccountingPeriod(
        period_name=name,
        start_date=start or today - timedelta(days=15),
        end_date=end or today + timedelta(days=15),
        is_open=is_open,
    )
    db_session.add(period)
    db_session.flush()
    return period


def journal_entries(db_session):
    return db_session.execute(select(JournalEntry).order_by(JournalEntry.id)).scalars().all()


def lines_by_account(entry):
    """{account_id: (debit, credit)} summed over the entry's lines."""
    totals = {}
    for line in entry.lines:
        debit, credit = totals.get(line.account_id, (0, 0))
        totals[line.account_id] = (debit + line.debit, credit + line.credit)
    return totals


def assert_balanced(entry):
    assert entry.lines
    assert sum(line.debit for line in entry.lines) == sum(line.credit for line in entry.lines)
    assert entry.total_debit == entry.total_credit
