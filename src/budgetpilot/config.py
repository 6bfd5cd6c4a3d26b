"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "BudgetPilot"
    DB_FILENAME = "budgetpilot.db"
    TRACKING_MODES = ("automatic", "manual")

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("BUDGETPILOT_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("BUDGETPILOT_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("BUDGETPILOT_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_EXTRA_PAYMENT = _env_float("BUDGETPILOT_DEFAULT_EXTRA_PAYMENT", 200.0)
        self.MAX_PLAN_MONTHS = int(_env_float("BUDGETPILOT_MAX_PLAN_MONTHS", 1200))
        self.TRACKING_MODE = os.getenv("BUDGETPILOT_TRACKING_MODE", "automatic").strip().lower()
        if self.TRACKING_MODE not in self.TRACKING_MODES:
            raise ValueError(
                f"BUDGETPILOT_TRACKING_MODE must be one of {', '.join(self.TRACKING_MODES)}."
            )
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("BUDGETPILOT_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("BUDGETPILOT_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the pytest suite."""

    DEBUG = False
    TESTING = True
