"""Service layer exports."""

from .budget_store import (
    BudgetAction,
    BudgetStore,
    ReleaseCategory,
    ReleaseItem,
    RolloverFromPrev,
    SetAnnual,
    SetCategory,
    SetItem,
)
from .ledger_service import Ledger, PurchaseLineInput
from .notifications import BudgetChangeBus
from .refunds import RefundRequestLine
from .reports import BudgetReports

__all__ = [
    "BudgetAction",
    "BudgetChangeBus",
    "BudgetReports",
    "BudgetStore",
    "Ledger",
    "PurchaseLineInput",
    "RefundRequestLine",
    "ReleaseCategory",
    "ReleaseItem",
    "RolloverFromPrev",
    "SetAnnual",
    "SetCategory",
    "SetItem",
]
