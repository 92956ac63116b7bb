"""SQLModel implementation of the budget year repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from ...models.budget import BudgetYear, CategoryBudget


class SQLModelBudgetYearRepository:
    """Budget year repository bound to one unit-of-work session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, client_id: str, year: int) -> Optional[BudgetYear]:
        statement = (
            select(BudgetYear)
            .where(BudgetYear.client_id == client_id)
            .where(BudgetYear.year == year)
            .options(selectinload(BudgetYear.categories).selectinload(CategoryBudget.items))
        )
        return self.session.exec(statement).first()

    def get_or_create(self, client_id: str, year: int) -> BudgetYear:
        budget = self.get(client_id, year)
        if budget is None:
            budget = BudgetYear(client_id=client_id, year=year, categories=[])
            self.session.add(budget)
            self.session.flush()
        return budget

    def add(self, budget: BudgetYear) -> BudgetYear:
        self.session.add(budget)
        self.session.flush()
        return budget

    def list_years(self, client_id: str) -> list[int]:
        statement = (
            select(BudgetYear.year)
            .where(BudgetYear.client_id == client_id)
            .order_by(BudgetYear.year.desc())  # type: ignore[attr-defined]
        )
        return sorted({int(year) for year in self.session.exec(statement).all()}, reverse=True)
