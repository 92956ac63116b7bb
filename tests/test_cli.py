"""Tests for the Flask CLI maintenance commands."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from carebudget.extensions import get_services, session_scope
from carebudget.infra.repositories import SQLModelBudgetYearRepository
from carebudget.services.budget_store import SetAnnual, SetCategory
from carebudget.services.ledger_service import PurchaseLineInput
from carebudget.services.refunds import RefundRequestLine


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def _tamper(app, client_id, year, **fields):
    with app.app_context():
        with session_scope() as session:
            budget = SQLModelBudgetYearRepository(session).get(client_id, year)
            for name, value in fields.items():
                setattr(budget, name, value)
            session.add(budget)


def _stored(app, client_id, year):
    with app.app_context():
        with session_scope() as session:
            return SQLModelBudgetYearRepository(session).get(client_id, year)


def _recompute(runner, client_id, scope):
    return runner.invoke(
        args=["carebudget-recompute", "--client-id", client_id, "--year", "2025", "--scope", scope]
    )


def _purchase(app, client_id, category_id, user_id, amount):
    return get_services(app).ledger.record_purchase(
        client_id,
        date=datetime(2025, 4, 1, tzinfo=timezone.utc),
        made_by_user_id=user_id,
        lines=[PurchaseLineInput(category_id=category_id, care_item_slug="soap", amount=amount)],
    )


def test_recompute_restores_allocation_and_spend(app, runner, client_id, category_id, user_id):
    services = get_services(app)
    services.budget_store.apply(client_id, SetAnnual(year=2025, amount=1000))
    services.budget_store.apply(client_id, SetCategory(year=2025, amount=400, category_id=category_id))
    _purchase(app, client_id, category_id, user_id, 12.5)
    _tamper(app, client_id, 2025, total_allocated=5, surplus=0, total_spent=0.0)

    allocation = _recompute(runner, client_id, "allocation")

    assert allocation.exit_code == 0, allocation.output
    assert "allocated=400" in allocation.output
    budget = _stored(app, client_id, 2025)
    assert (budget.total_allocated, budget.surplus, budget.total_spent) == (400, 600, 0.0)

    spend = _recompute(runner, client_id, "spend")

    assert spend.exit_code == 0, spend.output
    assert _stored(app, client_id, 2025).total_spent == pytest.approx(12.5)


def test_recompute_spend_scope_leaves_allocation_alone(app, runner, client_id, category_id):
    get_services(app).budget_store.apply(client_id, SetCategory(year=2025, amount=400, category_id=category_id))
    _tamper(app, client_id, 2025, total_allocated=5)

    result = _recompute(runner, client_id, "spend")

    assert result.exit_code == 0, result.output
    assert _stored(app, client_id, 2025).total_allocated == 5


def test_spend_recompute_keeps_refund_surplus(app, runner, client_id, category_id, user_id):
    services = get_services(app)
    services.budget_store.apply(client_id, SetAnnual(year=2025, amount=1000))
    services.budget_store.apply(client_id, SetCategory(year=2025, amount=400, category_id=category_id))
    purchase = _purchase(app, client_id, category_id, user_id, 50)
    services.ledger.record_refund(
        client_id,
        date=datetime(2025, 4, 2, tzinfo=timezone.utc),
        made_by_user_id=user_id,
        lines=[
            RefundRequestLine(
                refund_of_trans_id=purchase.id,
                refund_of_line_id=purchase.lines[0].id,
                amount=20,
            )
        ],
    )
    assert _stored(app, client_id, 2025).surplus == pytest.approx(620)

    result = _recompute(runner, client_id, "spend")

    assert result.exit_code == 0, result.output
    budget = _stored(app, client_id, 2025)
    assert budget.surplus == pytest.approx(620)
    assert budget.total_spent == pytest.approx(30)


def test_recompute_requires_a_scope(runner, client_id):
    result = runner.invoke(args=["carebudget-recompute", "--client-id", client_id, "--year", "2025"])
    assert result.exit_code == 2
    assert "--scope" in result.output


def test_recompute_rejects_combined_scope(runner, client_id):
    assert _recompute(runner, client_id, "all").exit_code == 2


def test_recompute_without_budget_fails(runner, client_id):
    result = _recompute(runner, client_id, "allocation")
    assert result.exit_code == 1
    assert "No budget" in result.output


def test_recompute_rejects_bad_client_id(runner):
    result = _recompute(runner, "nope", "spend")
    assert result.exit_code == 2


def test_rollover_command(app, runner, clock, client_id, category_id):
    store = get_services(app).budget_store
    clock.now = datetime(2024, 1, 10, tzinfo=timezone.utc)
    store.apply(client_id, SetAnnual(year=2024, amount=1000))
    store.apply(client_id, SetCategory(year=2024, amount=700, category_id=category_id))
    clock.now = datetime(2025, 6, 15, tzinfo=timezone.utc)

    args = ["carebudget-rollover", "--client-id", client_id, "--from-year", "2024", "--year", "2025"]
    result = runner.invoke(args=args)

    assert result.exit_code == 0, result.output
    assert "carryover=300" in result.output
    assert "categories=1" in result.output

    again = runner.invoke(args=args)
    assert again.exit_code == 1
    assert "AlreadyExists" in again.output

    overwritten = runner.invoke(args=[*args, "--overwrite", "--no-copy-categories", "--no-bring-surplus"])
    assert overwritten.exit_code == 0, overwritten.output
    assert "annual=300 carryover=300 categories=1" in overwritten.output


def test_rollover_without_categories_into_new_year(app, runner, clock, client_id, category_id):
    store = get_services(app).budget_store
    clock.now = datetime(2024, 1, 10, tzinfo=timezone.utc)
    store.apply(client_id, SetAnnual(year=2024, amount=500))
    store.apply(client_id, SetCategory(year=2024, amount=200, category_id=category_id))
    clock.now = datetime(2025, 6, 15, tzinfo=timezone.utc)

    result = runner.invoke(
        args=[
            "carebudget-rollover", "--client-id", client_id, "--from-year", "2024", "--year", "2025",
            "--no-copy-categories",
        ]
    )

    assert result.exit_code == 0, result.output
    assert "annual=300 carryover=300 categories=0" in result.output
