"""CareBudget: client care budgets, ledger and refunds as a Flask service."""

from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from .config import BaseConfig, DevConfig, TestingConfig
from .errors import CareBudgetError
from .logging_config import get_logger, setup_logging
from .services.clock import Clock
from .services.identity import ViewerResolver
from .services.notifications import ChangePublisher

CONFIGS: dict[str, type[BaseConfig]] = {
    "default": BaseConfig,
    "development": DevConfig,
    "testing": TestingConfig,
}

logger = get_logger("app")


def create_app(
    config_name: Optional[str] = None,
    *,
    viewer_resolver: Optional[ViewerResolver] = None,
    publisher: Optional[ChangePublisher] = None,
    clock: Optional[Clock] = None,
) -> Flask:
    """Application factory.

    ``viewer_resolver``, ``publisher`` and ``clock`` stand in for the session,
    notification and time collaborators; the defaults read the viewer headers,
    use an in-process change bus and the UTC wall clock.
    """

    try:
        config_cls = CONFIGS[config_name or "default"]
    except KeyError:
        raise ValueError(f"Unknown configuration: {config_name!r}") from None
    config = config_cls()

    app = Flask(__name__)
    app.config.from_object(config)
    app.config["CAREBUDGET_CONFIG"] = config
    app.config["SECRET_KEY"] = config.SECRET_KEY

    setup_logging(config)

    from . import cli
    from .blueprints import budget, transactions
    from .blueprints.common import header_viewer
    from .extensions import init_db

    init_db(
        app,
        viewer_resolver=viewer_resolver or header_viewer,
        publisher=publisher,
        clock=clock,
    )

    app.register_blueprint(budget.bp)
    app.register_blueprint(transactions.bp)

    @app.errorhandler(CareBudgetError)
    def _handle_care_budget_error(error: CareBudgetError):
        logger.info(
            "Request rejected",
            extra={"kind": error.kind, "status_code": error.status_code, "error": error.message},
        )
        return jsonify(error.to_dict()), error.status_code

    cli.init_app(app)

    logger.info("CareBudget app created", extra={"config": config_cls.__name__})
    return app


__all__ = ["BaseConfig", "DevConfig", "TestingConfig", "create_app"]
