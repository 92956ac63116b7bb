"""Database and service wiring for CareBudget."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from flask import Flask, current_app
from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .services.budget_store import BudgetStore
from .services.clock import Clock, utc_now
from .services.identity import ViewerResolver
from .services.ledger_service import Ledger
from .services.notifications import BudgetChangeBus, ChangePublisher
from .services.reports import BudgetReports

EXTENSION_KEY = "carebudget"


@dataclass(slots=True)
class CareBudgetServices:
    """Everything the request handlers and CLI commands need."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    publisher: ChangePublisher
    clock: Clock
    viewer_resolver: ViewerResolver
    budget_store: BudgetStore
    ledger: Ledger
    reports: BudgetReports


def init_db(
    app: Flask,
    *,
    viewer_resolver: ViewerResolver,
    publisher: Optional[ChangePublisher] = None,
    clock: Optional[Clock] = None,
) -> CareBudgetServices:
    """Create the engine and schema, build the services and attach them to ``app``."""

    config: BaseConfig = app.config["CAREBUDGET_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    publisher = publisher if publisher is not None else BudgetChangeBus()
    clock = clock or utc_now

    services = CareBudgetServices(
        config=config,
        engine=engine,
        session_factory=session_factory,
        publisher=publisher,
        clock=clock,
        viewer_resolver=viewer_resolver,
        budget_store=BudgetStore(session_factory, publisher=publisher, clock=clock),
        ledger=Ledger(
            session_factory,
            publisher=publisher,
            clock=clock,
            refund_epsilon=config.REFUND_EPSILON,
        ),
        reports=BudgetReports(session_factory),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services(app: Optional[Flask] = None) -> CareBudgetServices:
    """Return the services bound to ``app`` (or the current app)."""

    target = app or current_app
    try:
        return target.extensions[EXTENSION_KEY]
    except KeyError:  # pragma: no cover - misconfigured app
        raise RuntimeError("CareBudget services not initialized") from None


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope bound to the current app's engine."""

    with get_services().session_factory() as session:
        yield session
