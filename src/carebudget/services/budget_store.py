"""Budget year mutations: allocate, release and roll over.

Every action is one of the ``BudgetAction`` variants below. ``BudgetStore``
loads (or lazily creates) the client's document for the action's year,
applies the change, recomputes allocation totals, commits, and then publishes
a change notification for ``(client_id, year)``.

Allocation ceilings are deliberately asymmetric: ``SetCategory`` scales the
category's item allocations down to fit (floor-rounded, never corrected
upwards), while ``SetItem`` rejects a change that would overflow the category.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from ..errors import (
    AlreadyExists,
    BudgetNotFound,
    CategoryNotFound,
    ItemNotFound,
    ItemsExceedCategory,
    MalformedRequest,
    PastYearReadOnly,
)
from ..infra.database import SessionFactory
from ..infra.repositories import SQLModelBudgetYearRepository, SQLModelCatalogRepository
from ..logging_config import get_logger
from ..models.budget import BudgetYear, CategoryBudget, ItemBudget
from ..money import round_minor, to_allocation
from .clock import Clock, current_year, utc_now
from .locks import BUDGET_LOCKS, KeyedLocks
from .notifications import ChangePublisher, safe_publish
from .recompute import recompute_category_totals

logger = get_logger("budget_store")


@dataclass(frozen=True, slots=True)
class SetAnnual:
    year: int
    amount: float


@dataclass(frozen=True, slots=True)
class SetCategory:
    year: int
    amount: float
    category_id: Optional[str] = None
    category_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SetItem:
    year: int
    category_id: str
    care_item_slug: str
    amount: float
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ReleaseCategory:
    year: int
    category_id: str


@dataclass(frozen=True, slots=True)
class ReleaseItem:
    year: int
    category_id: str
    care_item_slug: str


@dataclass(frozen=True, slots=True)
class RolloverFromPrev:
    year: int
    from_year: int
    copy_categories: bool = True
    bring_surplus: bool = True
    overwrite_if_exists: bool = False
    reset_item_allocations: bool = False


BudgetAction = Union[SetAnnual, SetCategory, SetItem, ReleaseCategory, ReleaseItem, RolloverFromPrev]

ACTION_TYPES: tuple[type, ...] = (
    SetAnnual,
    SetCategory,
    SetItem,
    ReleaseCategory,
    ReleaseItem,
    RolloverFromPrev,
)


class _Unit:
    """Repositories sharing one session for the duration of an action."""

    def __init__(self, session) -> None:
        self.budgets = SQLModelBudgetYearRepository(session)
        self.catalog = SQLModelCatalogRepository(session)


class BudgetStore:
    """Apply ``BudgetAction`` values to a client's budget year."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        publisher: Optional[ChangePublisher] = None,
        clock: Clock = utc_now,
        locks: KeyedLocks = BUDGET_LOCKS,
    ) -> None:
        self.session_factory = session_factory
        self.publisher = publisher
        self.clock = clock
        self.locks = locks
        self._handlers: dict[type, Callable[[_Unit, str, BudgetAction], BudgetYear]] = {
            SetAnnual: self._set_annual,
            SetCategory: self._set_category,
            SetItem: self._set_item,
            ReleaseCategory: self._release_category,
            ReleaseItem: self._release_item,
            RolloverFromPrev: self._rollover_from_prev,
        }

    def apply(self, client_id: str, action: BudgetAction) -> BudgetYear:
        """Run one action end to end and return the saved document."""

        handler = self._handlers.get(type(action))
        if handler is None:
            raise MalformedRequest("Invalid action")
        if action.year < current_year(self.clock):
            raise PastYearReadOnly()

        with self.locks.hold(client_id, action.year):
            with self.session_factory() as session:
                budget = handler(_Unit(session), client_id, action)

        logger.info(
            "Budget action applied",
            extra={
                "client_id": client_id,
                "year": action.year,
                "action": type(action).__name__,
                "allocated": budget.total_allocated,
                "surplus": budget.surplus,
            },
        )
        safe_publish(self.publisher, client_id, action.year)
        return budget

    def _now(self) -> datetime:
        return self.clock()

    def _set_annual(self, unit: _Unit, client_id: str, action: SetAnnual) -> BudgetYear:
        budget = unit.budgets.get_or_create(client_id, action.year)
        budget.annual_allocated = to_allocation(action.amount)
        recompute_category_totals(budget, clock=self.clock)
        return unit.budgets.add(budget)

    def _set_category(self, unit: _Unit, client_id: str, action: SetCategory) -> BudgetYear:
        category_id = action.category_id
        category_name = action.category_name
        if category_id is None:
            if not (category_name or "").strip():
                raise MalformedRequest("categoryId or categoryName is required")
            resolved = unit.catalog.resolve_or_create_category(client_id, category_name)
            category_id, category_name = resolved.id, resolved.name

        budget = unit.budgets.get_or_create(client_id, action.year)
        amount = to_allocation(action.amount)
        existing = budget.find_category(category_id)
        if existing is None:
            budget.categories.append(
                CategoryBudget(
                    position=len(budget.categories),
                    category_id=category_id,
                    category_name=category_name or "Category",
                    allocated=amount,
                )
            )
        else:
            existing.category_name = category_name or existing.category_name
            existing.allocated = amount
            items_total = existing.items_total
            if items_total > existing.allocated and items_total > 0:
                for item in existing.items:
                    item.allocated = item.allocated * existing.allocated // items_total

        recompute_category_totals(budget, clock=self.clock)
        return unit.budgets.add(budget)

    def _set_item(self, unit: _Unit, client_id: str, action: SetItem) -> BudgetYear:
        budget = unit.budgets.get_or_create(client_id, action.year)
        category = budget.find_category(action.category_id)
        if category is None:
            raise CategoryNotFound()

        slug = action.care_item_slug.strip().lower()
        amount = to_allocation(action.amount)
        existing = category.find_item(slug)
        if existing is None:
            category.items.append(
                ItemBudget(
                    position=len(category.items),
                    care_item_slug=slug,
                    label=action.label or slug,
                    allocated=amount,
                    spent=0.0,
                )
            )
        else:
            existing.label = action.label or existing.label
            existing.allocated = amount

        if category.items_total > category.allocated:
            # Raised inside the session scope, so the change is rolled back.
            raise ItemsExceedCategory()

        recompute_category_totals(budget, clock=self.clock)
        return unit.budgets.add(budget)

    def _release_category(self, unit: _Unit, client_id: str, action: ReleaseCategory) -> BudgetYear:
        budget = unit.budgets.get_or_create(client_id, action.year)
        category = budget.find_category(action.category_id)
        if category is None:
            raise CategoryNotFound()

        had_allocation = category.allocated > 0 or category.items_total > 0
        category.allocated = 0
        for item in category.items:
            item.allocated = 0
        if had_allocation or category.released_at is None:
            category.released_at = self._now()

        recompute_category_totals(budget, clock=self.clock)
        return unit.budgets.add(budget)

    def _release_item(self, unit: _Unit, client_id: str, action: ReleaseItem) -> BudgetYear:
        budget = unit.budgets.get_or_create(client_id, action.year)
        category = budget.find_category(action.category_id)
        if category is None:
            raise CategoryNotFound()
        item = category.find_item(action.care_item_slug.strip())
        if item is None:
            raise ItemNotFound()

        if item.allocated > 0 or item.released_at is None:
            item.released_at = self._now()
        item.allocated = 0

        recompute_category_totals(budget, clock=self.clock)
        return unit.budgets.add(budget)

    def _rollover_from_prev(
        self, unit: _Unit, client_id: str, action: RolloverFromPrev
    ) -> BudgetYear:
        if action.from_year >= action.year:
            raise MalformedRequest("fromYear must be earlier than year")

        previous = unit.budgets.get(client_id, action.from_year)
        if previous is None:
            raise BudgetNotFound(f"No budget for {action.from_year}")

        target = unit.budgets.get(client_id, action.year)
        if target is not None and not action.overwrite_if_exists:
            raise AlreadyExists()

        prior_surplus = max(
            0, round_minor((previous.annual_allocated or 0) - (previous.total_allocated or 0))
        )

        if target is None:
            target = BudgetYear(client_id=client_id, year=action.year, categories=[])
        elif action.copy_categories:
            target.categories.clear()

        if action.copy_categories:
            for position, source in enumerate(previous.categories):
                target.categories.append(_copy_category(source, position, action.reset_item_allocations))

        if action.bring_surplus and prior_surplus > 0:
            target.opening_carryover = (target.opening_carryover or 0) + prior_surplus
            target.annual_allocated = (target.annual_allocated or 0) + prior_surplus

        target.rolled_from_year = action.from_year
        recompute_category_totals(target, clock=self.clock)
        return unit.budgets.add(target)


def _copy_category(source: CategoryBudget, position: int, reset_items: bool) -> CategoryBudget:
    return CategoryBudget(
        position=position,
        category_id=source.category_id,
        category_name=source.category_name,
        allocated=source.allocated,
        items=[
            ItemBudget(
                position=index,
                care_item_slug=item.care_item_slug,
                label=item.label,
                allocated=0 if reset_items else item.allocated,
                spent=0.0,
            )
            for index, item in enumerate(source.items)
        ],
    )
