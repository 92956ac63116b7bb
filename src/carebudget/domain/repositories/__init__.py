"""Repository protocol definitions for domain layer."""

from .budget import BudgetYearRepository
from .catalog import CatalogRepository
from .transaction import TransactionRepository

__all__ = [
    "BudgetYearRepository",
    "CatalogRepository",
    "TransactionRepository",
]
