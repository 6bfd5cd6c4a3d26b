"""Database wiring for the Flask application."""

from __future__ import annotations

from flask import Flask

from .config import BaseConfig
from .infra.database import (
    SessionFactory,
    create_db_engine,
    create_session_factory,
    init_database,
)

_engine = None


def init_db(app: Flask) -> None:
    """Initialize the SQLModel engine using configuration from the app."""

    config: BaseConfig = app.config["BUDGETPILOT_CONFIG"]
    engine = create_db_engine(config)
    init_database(engine)

    global _engine
    _engine = engine
    app.extensions["budgetpilot.engine"] = engine
    # TODO(@db-team): replace create_all with Alembic migrations once the schema is shared.


def get_engine():
    """Return the initialized SQLModel engine."""

    if _engine is None:  # pragma: no cover - exercised in integration tests
        raise RuntimeError("Database engine not initialized")
    return _engine


def get_session_factory() -> SessionFactory:
    """Return a transactional session factory bound to the app engine."""

    return create_session_factory(get_engine())
