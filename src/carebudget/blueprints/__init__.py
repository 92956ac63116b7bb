"""Blueprint exports."""

from . import budget, transactions

__all__ = [
    "budget",
    "transactions",
]
