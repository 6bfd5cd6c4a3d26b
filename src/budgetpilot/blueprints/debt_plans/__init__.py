"""Debt plan blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("debt_plans", __name__, url_prefix="/api/debt-plans")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
