"""Caller identity and role checks.

The session layer is an external collaborator; it hands the core a
``Viewer`` (or None when nobody is signed in) through an injected resolver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..errors import Forbidden, Unauthorised

FAMILY = "family"
CARER = "carer"
MANAGEMENT = "management"
KNOWN_ROLES = frozenset({FAMILY, CARER, MANAGEMENT})


@dataclass(frozen=True, slots=True)
class Viewer:
    user_id: str
    role: str


ViewerResolver = Callable[[], Optional[Viewer]]


def require_role(viewer: Optional[Viewer], allowed: Iterable[str]) -> Viewer:
    """Return the viewer when their role is allowed, else raise."""

    if viewer is None:
        raise Unauthorised()
    if viewer.role not in set(allowed):
        raise Forbidden()
    return viewer
