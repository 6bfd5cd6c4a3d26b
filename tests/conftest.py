"""Pytest configuration and shared fixtures for BudgetPilot tests.

This module provides database fixtures, test data factories, and Flask
client helpers for testing services, repositories and routes without
touching the real application database.
"""

from __future__ import annotations

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from budgetpilot.infra.database import create_session_factory
from budgetpilot.models import Account, Budget, Transaction, User

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session factory, the same shape services receive in the app."""

    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Plain session for arranging and inspecting rows directly."""

    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""

    existing = db_session.exec(select(User).where(User.username == "tester")).first()
    if existing:
        return existing
    u = User(username="tester")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def other_user(db_session) -> User:
    u = User(username="someone-else")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def account_factory(db_session, user):
    """Factory for creating test accounts.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(
        name: str = "Everyday Checking",
        account_type: str = "checking",
        balance: float = 0.0,
        interest_rate: float | None = None,
        minimum_payment: float | None = None,
        owner: User | None = None,
    ) -> Account:
        owner = owner or user
        account = Account(
            user_id=owner.id,
            name=name,
            account_type=account_type,
            balance=balance,
            interest_rate=interest_rate,
            minimum_payment=minimum_payment,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _create_account


@pytest.fixture
def budget_factory(db_session, user):
    """Factory for creating monthly budget envelopes."""

    def _create_budget(
        name: str = "Groceries",
        category: str = "Everyday",
        amount: float = 500.0,
        spent: float = 0.0,
        month: int | None = None,
        year: int | None = None,
        owner: User | None = None,
    ) -> Budget:
        today = datetime.now(timezone.utc)
        owner = owner or user
        budget = Budget(
            user_id=owner.id,
            name=name,
            category=category,
            amount=amount,
            spent=spent,
            month=month or today.month,
            year=year or today.year,
        )
        db_session.add(budget)
        db_session.commit()
        db_session.refresh(budget)
        return budget

    return _create_budget


@pytest.fixture
def transaction_factory(db_session, user):
    """Factory for creating ledger transactions.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    def _create_transaction(
        account: Account,
        amount: float,
        description: str = "",
        category: str = "",
        occurred_at: datetime | None = None,
        owner: User | None = None,
    ) -> Transaction:
        owner = owner or user
        txn = Transaction(
            user_id=owner.id,
            account_id=account.id,
            amount=amount,
            description=description,
            category=category,
            occurred_at=occurred_at or datetime.now(timezone.utc),
        )
        db_session.add(txn)
        db_session.commit()
        db_session.refresh(txn)
        return txn

    return _create_transaction


@pytest.fixture
def debt_accounts(account_factory):
    """A checking account plus two credit cards carrying balances."""

    checking = account_factory(name="Everyday Checking", balance=3000.0)
    visa = account_factory(
        name="Visa Rewards",
        account_type="credit",
        balance=-1200.0,
        interest_rate=0.199,
        minimum_payment=40.0,
    )
    store = account_factory(
        name="Store Card",
        account_type="credit",
        balance=-450.0,
        interest_rate=0.249,
        minimum_payment=25.0,
    )
    return {"checking": checking, "visa": visa, "store": store}


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(monkeypatch, tmp_path):
    """Application configured against a throwaway data directory."""

    monkeypatch.setenv("BUDGETPILOT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BUDGETPILOT_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setenv("BUDGETPILOT_DEV_MODE", "true")
    monkeypatch.setenv("BUDGETPILOT_TRACKING_MODE", "automatic")

    from budgetpilot import create_app

    flask_app = create_app("testing")
    yield flask_app
    flask_app.extensions["budgetpilot.engine"].dispose()


@pytest.fixture
def app_session_factory(app):
    return create_session_factory(app.extensions["budgetpilot.engine"])


@pytest.fixture
def app_user(app_session_factory) -> User:
    with app_session_factory() as session:
        u = User(username="api-user")
        session.add(u)
        session.flush()
        session.refresh(u)
        return u


@pytest.fixture
def app_account_factory(app_session_factory, app_user):
    """Account factory writing into the application's database."""

    def _create_account(
        name: str,
        account_type: str = "checking",
        balance: float = 0.0,
        interest_rate: float | None = None,
        minimum_payment: float | None = None,
    ) -> Account:
        with app_session_factory() as session:
            account = Account(
                user_id=app_user.id,
                name=name,
                account_type=account_type,
                balance=balance,
                interest_rate=interest_rate,
                minimum_payment=minimum_payment,
            )
            session.add(account)
            session.flush()
            session.refresh(account)
            return account

    return _create_account


@pytest.fixture
def client(app, app_user):
    """Test client that identifies as ``app_user`` on every request."""

    test_client = app.test_client()
    test_client.environ_base["HTTP_X_USER_ID"] = str(app_user.id)
    return test_client


@pytest.fixture
def anonymous_client(app):
    return app.test_client()


def count_rows(session_factory, model) -> int:
    with session_factory() as session:
        return len(session.exec(select(model)).all())


@pytest.fixture
def row_counter(session_factory):
    """Count rows of a model in the test database."""

    def _count(model) -> int:
        return count_rows(session_factory, model)

    return _count

