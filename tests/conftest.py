"""Shared pytest fixtures for finsight tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal

import pytest

from finsight.database import models
from finsight.database.factories import create_sqlite_database


@pytest.fixture
def temp_db():
    """Create a temporary ledger database for testing."""
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
def seed_rows(temp_db):
    """Return a helper that inserts ORM rows into the temporary database."""

    def _seed(*rows):
        session = temp_db._get_session()
        session.add_all(rows)
        session.commit()
        return rows

    return _seed


@pytest.fixture
def sample_ledger(seed_rows):
    """Seed a small ledger for user 'alice' with rent, salary and groceries.

    Rent is paid on the 1st of July, August and September 2024, so it is
    detected as a monthly pattern with next date 2024-10-01.
    """
    rent = models.Category(id=1, user_id="alice", name="Rent", category_type="expense")
    salary = models.Category(id=2, user_id="alice", name="Salary", category_type="income")
    groceries = models.Category(
        id=3, user_id="alice", name="Groceries", category_type="expense"
    )
    rows = [rent, salary, groceries]

    for txn_id, day in ((1, date(2024, 7, 1)), (2, date(2024, 8, 1)), (3, date(2024, 9, 1))):
        rows.append(
            models.Transaction(
                id=txn_id,
                user_id="alice",
                category_id=1,
                amount=Decimal("1200.00"),
                date=day,
                transaction_type="expense",
            )
        )
    for txn_id, day in ((4, date(2024, 7, 25)), (5, date(2024, 8, 25)), (6, date(2024, 9, 25))):
        rows.append(
            models.Transaction(
                id=txn_id,
                user_id="alice",
                category_id=2,
                amount=Decimal("4000.00"),
                date=day,
                transaction_type="income",
                description="Payroll",
            )
        )
    rows.append(
        models.Transaction(
            id=7,
            user_id="alice",
            category_id=3,
            amount=Decimal("85.40"),
            date=date(2024, 9, 10),
            transaction_type="expense",
            description="Market",
        )
    )
    # Another user's data must never leak into alice's analysis.
    rows.append(
        models.Transaction(
            id=8,
            user_id="bob",
            category_id=None,
            amount=Decimal("999.00"),
            date=date(2024, 9, 10),
            transaction_type="expense",
        )
    )
    rows.append(models.CategoryBudget(id=1, user_id="alice", category_id=3, amount=Decimal("400")))
    rows.append(
        models.SavingsGoal(
            id=1,
            user_id="alice",
            name="Vacation",
            target_amount=Decimal("3000"),
            current_amount=Decimal("1500"),
            deadline=date(2025, 6, 1),
        )
    )
    rows.append(models.LedgerSettings(user_id="alice", opening_balance=Decimal("1000.00")))
    return seed_rows(*rows)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
