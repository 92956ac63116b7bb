"""Flask CLI commands for CareBudget."""

from __future__ import annotations

import click

from .errors import CareBudgetError
from .ids import parse_id


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("carebudget-recompute")
    @click.option("--client-id", required=True, help="24-hex client id")
    @click.option("--year", type=int, required=True, help="Budget year")
    @click.option(
        "--scope",
        type=click.Choice(["allocation", "spend"]),
        required=True,
        help="Allocation totals from the categories, or spend totals from the ledger",
    )
    def carebudget_recompute(client_id: str, year: int, scope: str) -> None:
        """Re-derive one family of stored budget totals.

        Allocation and spend totals are separate procedures and are never run
        together; pass the one that needs repairing.
        """

        # Imported lazily so `flask --help` works without a database.
        from .extensions import get_services, session_scope
        from .infra.repositories import SQLModelBudgetYearRepository, SQLModelTransactionRepository
        from .services.locks import BUDGET_LOCKS
        from .services.notifications import safe_publish
        from .services.recompute import recompute_category_totals, recompute_spend_totals

        client = _client_or_fail(client_id)
        with BUDGET_LOCKS.hold(client, year):
            with session_scope() as session:
                budgets = SQLModelBudgetYearRepository(session)
                budget = budgets.get(client, year)
                if budget is None:
                    raise click.ClickException(f"No budget for {client} in {year}")
                clock = get_services().clock
                if scope == "allocation":
                    budgets.add(recompute_category_totals(budget, clock=clock))
                else:
                    budget = recompute_spend_totals(
                        budgets=budgets,
                        ledger=SQLModelTransactionRepository(session),
                        client_id=client,
                        year=year,
                        clock=clock,
                    )
                allocated, spent, surplus = budget.total_allocated, budget.total_spent, budget.surplus

        safe_publish(get_services().publisher, client, year)
        click.echo(f"Recomputed {scope}: allocated={allocated} spent={spent:.2f} surplus={surplus:.2f}")

    @app.cli.command("carebudget-rollover")
    @click.option("--client-id", required=True, help="24-hex client id")
    @click.option("--from-year", type=int, required=True, help="Source budget year")
    @click.option("--year", type=int, required=True, help="Target budget year")
    @click.option("--copy-categories/--no-copy-categories", default=True, show_default=True)
    @click.option("--bring-surplus/--no-bring-surplus", default=True, show_default=True)
    @click.option("--overwrite", is_flag=True, default=False, help="Replace an existing target year")
    @click.option("--reset-items", is_flag=True, default=False, help="Zero copied item allocations")
    def carebudget_rollover(
        client_id: str,
        from_year: int,
        year: int,
        copy_categories: bool,
        bring_surplus: bool,
        overwrite: bool,
        reset_items: bool,
    ) -> None:
        """Start a budget year from the previous one."""

        from .extensions import get_services
        from .services.budget_store import RolloverFromPrev

        client = _client_or_fail(client_id)
        action = RolloverFromPrev(
            year=year,
            from_year=from_year,
            copy_categories=copy_categories,
            bring_surplus=bring_surplus,
            overwrite_if_exists=overwrite,
            reset_item_allocations=reset_items,
        )
        try:
            budget = get_services().budget_store.apply(client, action)
        except CareBudgetError as exc:
            raise click.ClickException(f"{exc.kind}: {exc.message}") from exc

        click.echo(
            f"Rolled {from_year} -> {year}: annual={budget.annual_allocated} "
            f"carryover={budget.opening_carryover} categories={len(budget.categories)}"
        )


def _client_or_fail(client_id: str) -> str:
    try:
        return parse_id(client_id, field="client id")
    except CareBudgetError as exc:
        raise click.BadParameter(exc.message, param_hint="--client-id") from exc
