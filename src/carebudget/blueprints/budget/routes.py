"""Budget routes: manage actions and read views."""

from __future__ import annotations

from typing import Any

from flask import jsonify

from ...ids import parse_id
from ...models.budget import BudgetYear
from ...services.category_spend import CategorySpendReport
from ...services.reports import BudgetRow, BudgetSummary
from ..common import client_id_arg, json_body, require_viewer, services, year_arg
from . import bp
from .forms import BudgetActionForm


def _summary_payload(summary: BudgetSummary) -> dict[str, Any]:
    return {
        "annualAllocated": summary.annual_allocated,
        "spent": summary.spent,
        "remaining": summary.remaining,
        "surplus": summary.surplus,
        "openingCarryover": summary.opening_carryover,
    }


def _row_payload(row: BudgetRow) -> dict[str, Any]:
    return {
        "categoryId": row.category_id,
        "item": row.item,
        "category": row.category,
        "allocated": row.allocated,
        "spent": row.spent,
    }


def _manage_payload(budget: BudgetYear) -> dict[str, Any]:
    annual = budget.annual_allocated or 0
    spent = budget.total_spent or 0.0
    return {
        "ok": True,
        "annualAllocated": annual,
        "spent": spent,
        "remaining": max(0, annual - spent),
        "surplus": max(0, annual - (budget.total_allocated or 0)),
    }


def _category_payload(report: CategorySpendReport) -> dict[str, Any]:
    return {
        "categoryId": report.category_id,
        "categoryName": report.category_name,
        "allocated": report.allocated,
        "spent": report.spent,
        "items": [
            {
                "careItemSlug": item.slug,
                "label": item.label,
                "allocated": item.allocated,
                "spent": item.spent,
            }
            for item in report.items
        ],
    }


@bp.patch("/<client_id>/budget/manage")
def manage(client_id: str):
    """Apply one tagged budget action for the client."""

    require_viewer(services().config.BUDGET_MANAGER_ROLES)
    client = client_id_arg(client_id)
    form = BudgetActionForm.from_mapping(json_body())
    action = form.action_or_raise()
    budget = services().budget_store.apply(client, action)
    return jsonify(_manage_payload(budget))


@bp.get("/<client_id>/budget")
def rows(client_id: str):
    client = client_id_arg(client_id)
    year = year_arg()
    return jsonify([_row_payload(row) for row in services().reports.rows(client, year)])


@bp.get("/<client_id>/budget/summary")
def summary(client_id: str):
    client = client_id_arg(client_id)
    year = year_arg()
    return jsonify(_summary_payload(services().reports.summary(client, year)))


@bp.get("/<client_id>/budget/full")
def full(client_id: str):
    client = client_id_arg(client_id)
    year = year_arg()
    budget_summary, budget_rows = services().reports.full(client, year)
    return jsonify(
        {
            "summary": _summary_payload(budget_summary),
            "rows": [_row_payload(row) for row in budget_rows],
        }
    )


@bp.get("/<client_id>/budget/years")
def years(client_id: str):
    client = client_id_arg(client_id)
    return jsonify(services().reports.years(client))


@bp.get("/<client_id>/budget/category/<category_id>")
def category_detail(client_id: str, category_id: str):
    client = client_id_arg(client_id)
    category = parse_id(category_id, field="categoryId")
    year = year_arg()
    report = services().reports.category_detail(client, year, category)
    return jsonify(_category_payload(report))
