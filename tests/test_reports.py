"""Tests for budget rows, summary and year listings."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carebudget.ids import new_id
from carebudget.services.budget_store import SetAnnual, SetCategory
from carebudget.services.ledger_service import PurchaseLineInput
from carebudget.services.refunds import RefundRequestLine
from carebudget.services.reports import BudgetSummary

MAY_2025 = datetime(2025, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def two_categories(store, ledger, client_id, user_id):
    personal, meals = new_id(), new_id()
    store.apply(client_id, SetAnnual(year=2025, amount=1000))
    store.apply(client_id, SetCategory(year=2025, amount=400, category_id=personal, category_name="Personal"))
    store.apply(client_id, SetCategory(year=2025, amount=100, category_id=meals, category_name=" Meals "))
    purchase = ledger.record_purchase(
        client_id,
        date=MAY_2025,
        made_by_user_id=user_id,
        lines=[
            PurchaseLineInput(category_id=personal, care_item_slug="soap", amount=50.4),
            PurchaseLineInput(category_id=meals, care_item_slug="lunch", amount=10.0),
        ],
    )
    ledger.record_refund(
        client_id,
        date=MAY_2025,
        made_by_user_id=user_id,
        lines=[
            RefundRequestLine(
                refund_of_trans_id=purchase.id,
                refund_of_line_id=purchase.lines[0].id,
                amount=20.2,
            )
        ],
    )
    return personal, meals


def test_rows_report_net_spend_per_category(two_categories, reports, client_id):
    personal, meals = two_categories

    rows = reports.rows(client_id, 2025)

    assert [(row.category_id, row.category, row.allocated, row.spent) for row in rows] == [
        (personal, "Personal", 400, 30),
        (meals, "Meals", 100, 10),
    ]
    assert all(row.item == row.category for row in rows)


def test_summary_rounds_and_derives_remaining(two_categories, reports, client_id):
    summary = reports.summary(client_id, 2025)

    assert summary == BudgetSummary(
        annual_allocated=1000,
        spent=40,
        remaining=960,
        surplus=520,
        opening_carryover=0,
    )


def test_full_combines_summary_and_rows(two_categories, reports, client_id):
    summary, rows = reports.full(client_id, 2025)
    assert summary == reports.summary(client_id, 2025)
    assert rows == reports.rows(client_id, 2025)


def test_missing_budget_reports_zeros(reports, client_id):
    assert reports.rows(client_id, 2025) == []
    assert reports.summary(client_id, 2025) == BudgetSummary()
    assert reports.full(client_id, 2025) == (BudgetSummary(), [])


def test_years_are_distinct_and_descending(store, reports, client_id):
    store.apply(client_id, SetAnnual(year=2025, amount=1))
    store.apply(client_id, SetAnnual(year=2027, amount=1))
    store.apply(client_id, SetAnnual(year=2026, amount=1))
    store.apply(new_id(), SetAnnual(year=2030, amount=1))

    assert reports.years(client_id) == [2027, 2026, 2025]
