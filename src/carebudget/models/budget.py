"""Yearly budget tables: one document per client per calendar year."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BudgetYear(SQLModel, table=True):
    """Annual allocation for a client plus its derived totals.

    ``total_allocated``, ``total_spent`` and ``surplus`` are only ever written
    by the recompute engine.
    """

    __tablename__: ClassVar[str] = "budget_year"
    __table_args__ = (UniqueConstraint("client_id", "year", name="uq_budget_year_client_year"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: str = Field(nullable=False, index=True, max_length=24)
    year: int = Field(nullable=False, index=True)
    annual_allocated: int = Field(default=0, nullable=False)
    opening_carryover: int = Field(default=0, nullable=False)
    total_allocated: int = Field(default=0, nullable=False)
    total_spent: float = Field(default=0.0, nullable=False)
    surplus: float = Field(default=0.0, nullable=False)
    rolled_from_year: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=_utcnow, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, sa_type=DateTime(timezone=True), nullable=False)

    categories: list["CategoryBudget"] = Relationship(
        back_populates="budget_year",
        sa_relationship=relationship(
            "CategoryBudget",
            back_populates="budget_year",
            order_by="CategoryBudget.position",
            cascade="all, delete-orphan",
        ),
    )

    def find_category(self, category_id: str) -> Optional["CategoryBudget"]:
        for category in self.categories:
            if category.category_id == category_id:
                return category
        return None


class CategoryBudget(SQLModel, table=True):
    """Allocation to one care category within a budget year."""

    __tablename__: ClassVar[str] = "budget_category"

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_year_id: Optional[int] = Field(
        default=None, foreign_key="budget_year.id", nullable=False, index=True
    )
    position: int = Field(default=0, nullable=False)
    category_id: str = Field(nullable=False, index=True, max_length=24)
    category_name: str = Field(default="Category", max_length=128)
    allocated: int = Field(default=0, nullable=False)
    released_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    budget_year: Optional[BudgetYear] = Relationship(
        back_populates="categories",
        sa_relationship=relationship("BudgetYear", back_populates="categories"),
    )
    items: list["ItemBudget"] = Relationship(
        back_populates="category",
        sa_relationship=relationship(
            "ItemBudget",
            back_populates="category",
            order_by="ItemBudget.position",
            cascade="all, delete-orphan",
        ),
    )

    @property
    def items_total(self) -> int:
        return sum(item.allocated for item in self.items)

    def find_item(self, slug: str) -> Optional["ItemBudget"]:
        wanted = slug.lower()
        for item in self.items:
            if item.care_item_slug == wanted:
                return item
        return None


class ItemBudget(SQLModel, table=True):
    """Allocation to one care item (by slug) within a category."""

    __tablename__: ClassVar[str] = "budget_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    category_budget_id: Optional[int] = Field(
        default=None, foreign_key="budget_category.id", nullable=False, index=True
    )
    position: int = Field(default=0, nullable=False)
    care_item_slug: str = Field(nullable=False, index=True, max_length=128)
    label: str = Field(default="", max_length=255)
    allocated: int = Field(default=0, nullable=False)
    # Informational only; reports read spend from the ledger.
    spent: float = Field(default=0.0, nullable=False)
    released_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    category: Optional[CategoryBudget] = Relationship(
        back_populates="items",
        sa_relationship=relationship("CategoryBudget", back_populates="items"),
    )
