"""Transactions and budget transfer blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("transfers", __name__, url_prefix="/api")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
