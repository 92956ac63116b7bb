"""Read-only budget views: category rows, the summary boxes, years."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain.repositories import TransactionRepository
from ..infra.database import SessionFactory
from ..infra.repositories import (
    SQLModelBudgetYearRepository,
    SQLModelCatalogRepository,
    SQLModelTransactionRepository,
)
from ..models.budget import BudgetYear
from ..models.transaction import PURCHASE
from ..money import round_minor
from .category_spend import CategorySpendReport, category_spend_report


@dataclass(frozen=True, slots=True)
class BudgetRow:
    category_id: str
    item: str
    category: str
    allocated: int
    spent: int


@dataclass(frozen=True, slots=True)
class BudgetSummary:
    annual_allocated: int = 0
    spent: int = 0
    remaining: int = 0
    surplus: int = 0
    opening_carryover: int = 0


def spend_by_category(
    ledger: TransactionRepository, *, client_id: str, year: int
) -> dict[str, float]:
    """Net ledger spend per category id for the year."""

    totals: dict[str, float] = {}
    for txn_type, line in ledger.lines_for_year(client_id, year):
        signed = line.amount if txn_type == PURCHASE else -line.amount
        totals[line.category_id] = totals.get(line.category_id, 0.0) + signed
    return totals


def build_rows(budget: BudgetYear, spent: dict[str, float]) -> list[BudgetRow]:
    rows: list[BudgetRow] = []
    for category in budget.categories:
        name = (category.category_name or "Unknown").strip()
        rows.append(
            BudgetRow(
                category_id=category.category_id,
                item=name,
                category=name,
                allocated=max(0, round_minor(category.allocated or 0)),
                spent=round_minor(spent.get(category.category_id, 0.0)),
            )
        )
    return rows


def build_summary(budget: Optional[BudgetYear]) -> BudgetSummary:
    if budget is None:
        return BudgetSummary()
    annual = round_minor(budget.annual_allocated or 0)
    spent = round_minor(budget.total_spent or 0.0)
    return BudgetSummary(
        annual_allocated=annual,
        spent=spent,
        remaining=max(0, annual - spent),
        surplus=max(0, round_minor(budget.surplus or 0.0)),
        opening_carryover=int(budget.opening_carryover or 0),
    )


class BudgetReports:
    """Facade over the read models; each call opens its own session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self.session_factory = session_factory

    def rows(self, client_id: str, year: int) -> list[BudgetRow]:
        with self.session_factory() as session:
            budget = SQLModelBudgetYearRepository(session).get(client_id, year)
            if budget is None:
                return []
            spent = spend_by_category(
                SQLModelTransactionRepository(session), client_id=client_id, year=year
            )
            return build_rows(budget, spent)

    def summary(self, client_id: str, year: int) -> BudgetSummary:
        with self.session_factory() as session:
            return build_summary(SQLModelBudgetYearRepository(session).get(client_id, year))

    def full(self, client_id: str, year: int) -> tuple[BudgetSummary, list[BudgetRow]]:
        with self.session_factory() as session:
            budget = SQLModelBudgetYearRepository(session).get(client_id, year)
            if budget is None:
                return BudgetSummary(), []
            spent = spend_by_category(
                SQLModelTransactionRepository(session), client_id=client_id, year=year
            )
            return build_summary(budget), build_rows(budget, spent)

    def years(self, client_id: str) -> list[int]:
        with self.session_factory() as session:
            return SQLModelBudgetYearRepository(session).list_years(client_id)

    def category_detail(self, client_id: str, year: int, category_id: str) -> CategorySpendReport:
        with self.session_factory() as session:
            return category_spend_report(
                budgets=SQLModelBudgetYearRepository(session),
                ledger=SQLModelTransactionRepository(session),
                catalog=SQLModelCatalogRepository(session),
                client_id=client_id,
                year=year,
                category_id=category_id,
            )
