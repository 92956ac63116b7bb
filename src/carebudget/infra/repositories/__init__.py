"""Concrete repository implementations using SQLModel."""

from .budget import SQLModelBudgetYearRepository
from .catalog import SQLModelCatalogRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelBudgetYearRepository",
    "SQLModelCatalogRepository",
    "SQLModelTransactionRepository",
]
