"""Care-item slug normalisation."""

from __future__ import annotations

import re

_STRIP = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Derive a slug from a free-text label ("Tooth Brush!" -> "tooth-brush")."""

    value = _STRIP.sub("", (text or "").strip().lower())
    value = _SPACES.sub("-", value)
    return _DASHES.sub("-", value)


def normalize_slug(slug: str | None, label: str | None = None) -> str:
    """Lower-case a stored slug, falling back to one derived from ``label``."""

    cleaned = (slug or "").strip().lower()
    if cleaned:
        return cleaned
    return slugify(label or "")
