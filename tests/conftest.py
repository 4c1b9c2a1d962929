"""Shared pytest fixtures for walletwise tests."""

import logging
import os
import tempfile
from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from walletwise.database.factories import create_sqlite_database
from walletwise.domain.category import CategoryService
from walletwise.domain.entities import Transaction, TransactionType, WalletType
from walletwise.domain.profile import ProfileService
from walletwise.domain.reconciler import BalanceReconciler
from walletwise.domain.report import ReportService
from walletwise.domain.store import EntityStore
from walletwise.domain.wallet import WalletService

USER_ID = "local"


@pytest.fixture(autouse=True)
def reset_log_handlers():
    """Drop handlers the CLI attaches to stream objects CliRunner closes."""
    yield
    logging.getLogger("walletwise").handlers.clear()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def store(temp_db):
    """Create an EntityStore for the test user, backed by the temporary database."""
    return EntityStore.load(temp_db, USER_ID)


@pytest.fixture
def reload_store(temp_db):
    """Return a function that reads the user's state back from the database."""

    def _reload() -> EntityStore:
        # A fresh session so rows written by other connections are re-read
        temp_db.disconnect()
        return EntityStore.load(temp_db, USER_ID)

    return _reload


@pytest.fixture
def wallet_service(store, temp_db):
    """Create a WalletService bound to the store and database."""
    return WalletService(store, temp_db)


@pytest.fixture
def category_service(store, temp_db):
    """Create a CategoryService bound to the store and database."""
    return CategoryService(store, temp_db)


@pytest.fixture
def reconciler(store, temp_db):
    """Create a BalanceReconciler bound to the store and database."""
    return BalanceReconciler(store, temp_db)


@pytest.fixture
def profile_service(store, temp_db):
    """Create a ProfileService bound to the store and database."""
    return ProfileService(store, temp_db)


@pytest.fixture
def report_service(store):
    """Create a ReportService reading the store."""
    return ReportService(store)


@pytest.fixture
def sample_wallets(wallet_service):
    """Create a cash wallet and a bank wallet."""
    cash = wallet_service.create_wallet(name="Cash", balance=Decimal("500000"), type=WalletType.CASH)
    bank = wallet_service.create_wallet(name="BCA", balance=Decimal("2000000"), type=WalletType.BANK)
    return {"cash": cash, "bank": bank}


@pytest.fixture
def sample_categories(category_service):
    """Create two budgeted categories and one without a budget."""
    food = category_service.create_category(name="Food", monthly_budget=Decimal("1000000"))
    transport = category_service.create_category(name="Transport", monthly_budget=Decimal("500000"))
    gifts = category_service.create_category(name="Gifts")
    return {"food": food, "transport": transport, "gifts": gifts}


@pytest.fixture
def make_transaction():
    """Build detached Transaction entities for pure-function tests."""
    counter = {"n": 0}

    def _make(
        amount,
        type=TransactionType.EXPENSE,
        day=date(2024, 3, 15),
        category_id=None,
        wallet_id=None,
        description=None,
        created_at=None,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            id=f"t{counter['n']:04d}",
            user_id=USER_ID,
            type=TransactionType(type),
            amount=Decimal(str(amount)),
            description=description,
            date=day,
            category_id=category_id,
            wallet_id=wallet_id,
            created_at=created_at or datetime(day.year, day.month, day.day, 12, 0, tzinfo=UTC),
        )

    return _make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
