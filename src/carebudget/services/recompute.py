"""Budget totals recomputation.

Two independent procedures keep ``BudgetYear`` totals honest:

* ``recompute_category_totals`` runs after allocation edits and derives
  ``total_allocated`` and ``surplus`` from the category tree.
* ``recompute_spend_totals`` runs after ledger writes and derives
  ``total_spent`` from the ledger sums. A refund additionally bumps
  ``surplus`` by the refunded amount on top of the lower spend figure.
"""

from __future__ import annotations

from typing import Optional

from ..domain.repositories import BudgetYearRepository, TransactionRepository
from ..logging_config import get_logger
from ..models.budget import BudgetYear
from ..models.transaction import PURCHASE, REFUND
from .clock import Clock, utc_now

logger = get_logger("recompute")


def recompute_category_totals(budget: BudgetYear, *, clock: Clock = utc_now) -> BudgetYear:
    """Derive allocated total and surplus from the category allocations."""

    budget.total_allocated = sum(category.allocated or 0 for category in budget.categories)
    budget.surplus = max(0, (budget.annual_allocated or 0) - budget.total_allocated)
    budget.updated_at = clock()
    return budget


def recompute_spend_totals(
    *,
    budgets: BudgetYearRepository,
    ledger: TransactionRepository,
    client_id: str,
    year: int,
    refund_delta: float = 0.0,
    clock: Clock = utc_now,
) -> Optional[BudgetYear]:
    """Derive spent from the non-voided ledger; no-op when no budget exists."""

    sums = ledger.sum_by_type(client_id, year)
    purchases = sums.get(PURCHASE, 0.0)
    refunds = sums.get(REFUND, 0.0)

    budget = budgets.get(client_id, year)
    if budget is None:
        logger.debug(
            "No budget to recompute spend for",
            extra={"client_id": client_id, "year": year},
        )
        return None

    budget.total_spent = max(0.0, purchases - refunds)
    if refund_delta > 0:
        budget.surplus = max(0.0, (budget.surplus or 0.0) + refund_delta)
    budget.updated_at = clock()
    budgets.add(budget)

    logger.info(
        "Spend totals recomputed",
        extra={
            "client_id": client_id,
            "year": year,
            "spent": budget.total_spent,
            "refund_delta": refund_delta,
        },
    )
    return budget
