"""Pytest configuration and shared fixtures for FinTrack tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the categorizer, the aggregator and the repositories without touching
a real database.
"""

from __future__ import annotations

import tempfile
from datetime import date, datetime, timezone
from pathlib import Path

import pytest
from sqlmodel import Session

from fintrack.config import TestConfig
from fintrack.infra.database import create_db_engine, create_session_factory, init_database
from fintrack.models import (
    Account,
    Budget,
    BudgetPeriod,
    SavingsGoal,
    Transaction,
    User,
    UserCategoryRule,
)

# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path, monkeypatch) -> TestConfig:
    """Configuration rooted in a temporary data directory."""

    monkeypatch.setenv("FINTRACK_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("FINTRACK_DATABASE_URL", raising=False)
    monkeypatch.delenv("FINTRACK_NIGHTLY_HOUR", raising=False)
    return TestConfig()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(test_config):
    """Create an isolated SQLite database for each test.

    The engine is built the same way the application builds it, so foreign
    keys are enforced and ON DELETE CASCADE applies.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    test_config.DATABASE_URL = f"sqlite:///{db_path}"
    engine = create_db_engine(test_config)
    init_database(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test.

    Yields:
        Session: SQLModel session for test
    """
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories expect."""

    return create_session_factory(db_engine)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test users."""

    counter = {"n": 0}

    def _create_user(email: str | None = None, full_name: str = "Test User") -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            full_name=full_name,
            password_hash="dummy-hash",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Create a default user for scoping data."""

    return user_factory(email="tester@example.com")


@pytest.fixture
def account_factory(db_session, user):
    """Factory for creating test accounts.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    counter = {"n": 0}

    def _create_account(
        name: str = "Everyday Checking",
        account_type: str = "depository",
        owner: User | None = None,
    ) -> Account:
        counter["n"] += 1
        owner = owner or user
        account = Account(
            user_id=owner.id,
            plaid_account_id=f"acc-{owner.id}-{counter['n']}",
            name=name,
            type=account_type,
            subtype="checking",
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def account(account_factory) -> Account:
    return account_factory()


@pytest.fixture
def transaction_factory(db_session, user, account):
    """Factory for creating test transactions.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    counter = {"n": 0}

    def _create_transaction(
        amount: float,
        name: str = "Test transaction",
        merchant_name: str | None = None,
        occurred_at: datetime | None = None,
        primary_category: str | None = None,
        categories: list[str] | None = None,
        pending: bool = False,
        owner: User | None = None,
        account_id: int | None = None,
    ) -> Transaction:
        """Create a test transaction with sensible defaults.

        Args:
            amount: Positive for spend, negative for refunds and income
            name: Raw description from the bank feed
            merchant_name: Cleaned merchant name, if the feed supplied one
            occurred_at: Transaction timestamp (defaults to now)
            primary_category: Current display category
            categories: Bank category hierarchy

        Returns:
            Transaction: Persisted transaction instance
        """
        counter["n"] += 1
        owner = owner or user
        transaction = Transaction(
            plaid_transaction_id=f"txn-{owner.id}-{counter['n']}",
            user_id=owner.id,
            account_id=account_id or account.id,
            name=name,
            merchant_name=merchant_name,
            amount=amount,
            date=occurred_at or datetime.now(timezone.utc),
            pending=pending,
            primary_category=primary_category,
            categories=categories or [],
        )
        db_session.add(transaction)
        db_session.commit()
        db_session.refresh(transaction)
        return transaction

    return _create_transaction


@pytest.fixture
def rule_factory(db_session, user):
    """Factory for creating category rules."""

    def _create_rule(
        merchant: str,
        category: str,
        *,
        is_regex: bool = False,
        priority: int = 1,
        created_at: datetime | None = None,
        owner: User | None = None,
    ) -> UserCategoryRule:
        owner = owner or user
        rule = UserCategoryRule(
            user_id=owner.id,
            merchant=merchant,
            category=category,
            is_regex=is_regex,
            priority=priority,
        )
        if created_at is not None:
            rule.created_at = created_at
        db_session.add(rule)
        db_session.commit()
        db_session.refresh(rule)
        return rule

    return _create_rule


@pytest.fixture
def budget_factory(db_session, user):
    """Factory for creating budgets."""

    def _create_budget(
        category: str,
        amount: float,
        *,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        start_date: date = date(2024, 1, 1),
        end_date: date | None = None,
        is_active: bool = True,
        owner: User | None = None,
    ) -> Budget:
        owner = owner or user
        budget = Budget(
            user_id=owner.id,
            name=f"{category} budget",
            category=category,
            amount=amount,
            period=period,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        )
        db_session.add(budget)
        db_session.commit()
        db_session.refresh(budget)
        return budget

    return _create_budget


@pytest.fixture
def goal_factory(db_session, user):
    """Factory for creating savings goals."""

    def _create_goal(
        target_amount: float,
        current_amount: float = 0.0,
        *,
        name: str = "Emergency Fund",
        target_date: date = date(2024, 12, 31),
        is_active: bool = True,
        is_completed: bool = False,
        owner: User | None = None,
    ) -> SavingsGoal:
        owner = owner or user
        goal = SavingsGoal(
            user_id=owner.id,
            name=name,
            target_amount=target_amount,
            current_amount=current_amount,
            target_date=target_date,
            is_active=is_active,
            is_completed=is_completed,
        )
        db_session.add(goal)
        db_session.commit()
        db_session.refresh(goal)
        return goal

    return _create_goal


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01) -> None:
    """Assert two floats are equal within a tolerance.

    Args:
        actual: Computed value
        expected: Expected value
        tolerance: Maximum allowed difference
    """
    assert abs(actual - expected) < tolerance, f"Expected {expected}, got {actual}"
