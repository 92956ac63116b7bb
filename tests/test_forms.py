"""Tests for request body validation into typed actions."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carebudget.blueprints.budget.forms import BudgetActionForm
from carebudget.blueprints.transactions.forms import TransactionForm, parse_transaction_date
from carebudget.errors import InvalidAmount, InvalidDate, InvalidId, MalformedRequest
from carebudget.services.budget_store import ReleaseItem, RolloverFromPrev, SetCategory

CATEGORY = "ab" * 12


def test_set_category_form():
    form = BudgetActionForm.from_mapping(
        {"action": "setCategory", "year": "2025", "categoryId": CATEGORY.upper(), "amount": "12.5"}
    )

    assert form.validate()
    assert form.action == SetCategory(year=2025, amount=12.5, category_id=CATEGORY, category_name=None)


def test_release_item_lower_cases_slug():
    form = BudgetActionForm.from_mapping(
        {"action": "releaseItem", "year": 2025, "categoryId": CATEGORY, "careItemSlug": " Socks "}
    )
    assert form.action_or_raise() == ReleaseItem(year=2025, category_id=CATEGORY, care_item_slug="socks")


def test_rollover_defaults_and_to_year_alias():
    form = BudgetActionForm.from_mapping({"action": "rolloverFromPrev", "fromYear": 2024, "toYear": 2025})
    assert form.action_or_raise() == RolloverFromPrev(
        year=2025,
        from_year=2024,
        copy_categories=True,
        bring_surplus=True,
        overwrite_if_exists=False,
        reset_item_allocations=False,
    )


@pytest.mark.parametrize(
    "body, error",
    [
        ({"action": "explode", "year": 2025}, MalformedRequest),
        ({"year": 2025}, MalformedRequest),
        ({"action": "setAnnual", "amount": 5}, MalformedRequest),
        ({"action": "setAnnual", "year": 2025, "amount": "NaN"}, InvalidAmount),
        ({"action": "setItem", "year": 2025, "categoryId": "x", "careItemSlug": "a", "amount": 1}, InvalidId),
        ({"action": "setItem", "year": 2025, "categoryId": CATEGORY, "amount": 1}, MalformedRequest),
        ({"action": "rolloverFromPrev", "fromYear": 2024, "year": 2025, "overwriteIfExists": "yes"}, MalformedRequest),
    ],
)
def test_budget_form_raises_first_error(body, error):
    form = BudgetActionForm.from_mapping(body)
    assert not form.validate()
    assert form.errors
    with pytest.raises(error):
        form.action_or_raise()


def test_parse_transaction_date_variants():
    assert parse_transaction_date("2025-05-01") == datetime(2025, 5, 1, tzinfo=timezone.utc)
    assert parse_transaction_date("2025-05-01T23:30:00-02:00") == datetime(2025, 5, 2, 1, 30, tzinfo=timezone.utc)
    with pytest.raises(InvalidDate):
        parse_transaction_date("01/05/2025")
    with pytest.raises(InvalidDate):
        parse_transaction_date(None)


def test_transaction_form_collects_errors_per_field():
    form = TransactionForm.from_mapping(
        {
            "type": "Refund",
            "date": "2025-13-01",
            "madeByUserId": CATEGORY,
            "lines": [{"refundOfTransId": CATEGORY, "refundOfLineId": "bad", "amount": 1}],
        }
    )

    assert not form.validate()
    assert set(form.errors) == {"date", "lines[0]"}
    with pytest.raises(InvalidDate):
        form.raise_first_error()


def test_transaction_form_uses_viewer_as_default_author():
    form = TransactionForm.from_mapping(
        {
            "type": "Purchase",
            "date": "2025-05-01",
            "lines": [{"categoryId": CATEGORY, "careItemSlug": "Soap", "amount": 2}],
        },
        default_user_id="cd" * 12,
    )

    assert form.validate()
    assert form.made_by_user_id == "cd" * 12
    assert [(line.care_item_slug, line.amount) for line in form.purchase_lines] == [("Soap", 2.0)]


def test_action_or_raise_repeats_the_recorded_failure():
    form = BudgetActionForm.from_mapping({"action": "setAnnual", "year": 2025, "amount": "lots"})

    assert not form.validate()
    with pytest.raises(InvalidAmount):
        form.action_or_raise()
    with pytest.raises(InvalidAmount):
        form.action_or_raise()
    assert form.action is None
