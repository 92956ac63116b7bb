"""SQLModel table exports."""

from .budget import BudgetYear, CategoryBudget, ItemBudget
from .catalog import CareCategory, CareItem
from .transaction import PURCHASE, REFUND, Transaction, TransactionLine

__all__ = [
    "BudgetYear",
    "CategoryBudget",
    "ItemBudget",
    "CareCategory",
    "CareItem",
    "Transaction",
    "TransactionLine",
    "PURCHASE",
    "REFUND",
]
