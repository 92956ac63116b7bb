"""Request helpers shared by the JSON blueprints."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from flask import request

from ..errors import MalformedRequest
from ..extensions import CareBudgetServices, get_services
from ..ids import parse_id
from ..services.clock import current_year
from ..services.identity import KNOWN_ROLES, Viewer, require_role

VIEWER_ID_HEADER = "X-Viewer-Id"
VIEWER_ROLE_HEADER = "X-Viewer-Role"


def header_viewer() -> Optional[Viewer]:
    """Default resolver: trust the viewer headers set by the session layer."""

    user_id = (request.headers.get(VIEWER_ID_HEADER) or "").strip()
    role = (request.headers.get(VIEWER_ROLE_HEADER) or "").strip().lower()
    if not user_id or role not in KNOWN_ROLES:
        return None
    return Viewer(user_id=user_id, role=role)


def services() -> CareBudgetServices:
    return get_services()


def require_viewer(allowed: Iterable[str]) -> Viewer:
    return require_role(services().viewer_resolver(), allowed)


def client_id_arg(client_id: str) -> str:
    return parse_id(client_id, field="clientId")


def year_arg() -> int:
    """``?year=`` as an int, defaulting to the current year."""

    raw = request.args.get("year")
    if raw is None or not raw.strip():
        return current_year(services().clock)
    try:
        return int(raw.strip())
    except ValueError:
        raise MalformedRequest("year must be an integer") from None


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedRequest("Request body must be a JSON object")
    return data
