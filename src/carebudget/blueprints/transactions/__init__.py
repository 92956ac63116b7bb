"""Transactions blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("transactions", __name__, url_prefix="/api/v1/clients")

from . import routes  # noqa: E402,F401 - ensure routes get registered

__all__ = ["bp"]
