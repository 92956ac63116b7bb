"""Identifier helpers.

Clients, categories, users and ledger rows are addressed by 24-character
hexadecimal ids, matching the ids handed out by the identity and catalog
collaborators.
"""

from __future__ import annotations

import re
import secrets
from typing import Any

from .errors import InvalidId

_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_id() -> str:
    return secrets.token_hex(12)


def is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_ID_PATTERN.match(value.strip().lower()))


def parse_id(value: Any, *, field: str = "id") -> str:
    """Return the normalised id or raise ``InvalidId`` naming ``field``."""

    if not is_valid_id(value):
        raise InvalidId(f"Invalid {field}")
    return value.strip().lower()
