"""Per-category spend report.

Budget items, ledger lines and the care catalog are kept loosely coupled:
they only share a normalised (lower-cased) care-item slug. This report joins
the three by that key at read time, so an item shows up if any one of the
sources knows about it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..domain.repositories import BudgetYearRepository, CatalogRepository, TransactionRepository
from ..models.transaction import PURCHASE
from ..money import round_minor
from ..slugs import normalize_slug, slugify


@dataclass(slots=True)
class CategoryItemSpend:
    slug: str
    label: str
    allocated: int = 0
    spent: int = 0


@dataclass(slots=True)
class CategorySpendReport:
    category_id: str
    category_name: str
    allocated: int
    spent: int
    items: list[CategoryItemSpend] = field(default_factory=list)


@dataclass(slots=True)
class _LedgerSpend:
    spent: float = 0.0
    label: Optional[str] = None


def _label_sort_key(item: CategoryItemSpend) -> tuple[str, str]:
    return (item.label.casefold(), item.label)


def ledger_spend_by_slug(
    ledger: TransactionRepository, *, client_id: str, year: int, category_id: str
) -> dict[str, _LedgerSpend]:
    """Net spend (purchases minus refunds) and last-seen label per slug."""

    by_slug: dict[str, _LedgerSpend] = {}
    for txn_type, line in ledger.lines_for_year(client_id, year, category_id=category_id):
        slug = normalize_slug(line.care_item_slug, line.label)
        entry = by_slug.setdefault(slug, _LedgerSpend())
        entry.spent += line.amount if txn_type == PURCHASE else -line.amount
        if line.label and line.label.strip():
            entry.label = line.label.strip()
    return by_slug


def category_spend_report(
    *,
    budgets: BudgetYearRepository,
    ledger: TransactionRepository,
    catalog: CatalogRepository,
    client_id: str,
    year: int,
    category_id: str,
) -> CategorySpendReport:
    """Reconcile budget items, ledger spend and catalog labels for one category."""

    budget = budgets.get(client_id, year)
    budget_category = budget.find_category(category_id) if budget is not None else None

    budget_items = {}
    if budget_category is not None:
        for item in budget_category.items:
            budget_items[item.care_item_slug.lower()] = item

    spend = ledger_spend_by_slug(ledger, client_id=client_id, year=year, category_id=category_id)

    catalog_labels: dict[str, str] = {}
    for label in catalog.list_care_item_labels(client_id, category_id):
        slug = slugify(label)
        if slug:
            catalog_labels.setdefault(slug, label.strip())

    items: list[CategoryItemSpend] = []
    for slug in set(budget_items) | set(spend) | set(catalog_labels):
        budget_item = budget_items.get(slug)
        ledger_entry = spend.get(slug)
        label = (
            (budget_item.label.strip() if budget_item is not None and budget_item.label else "")
            or (ledger_entry.label if ledger_entry is not None and ledger_entry.label else "")
            or catalog_labels.get(slug, "")
            or slug
        )
        items.append(
            CategoryItemSpend(
                slug=slug,
                label=label,
                allocated=budget_item.allocated if budget_item is not None else 0,
                spent=round_minor(ledger_entry.spent) if ledger_entry is not None else 0,
            )
        )
    items.sort(key=_label_sort_key)

    category_name = "Category"
    allocated = 0
    if budget_category is not None:
        category_name = (budget_category.category_name or "").strip() or "Category"
        allocated = budget_category.allocated

    return CategorySpendReport(
        category_id=category_id,
        category_name=category_name,
        allocated=allocated,
        spent=round_minor(sum(entry.spent for entry in spend.values())),
        items=items,
    )
