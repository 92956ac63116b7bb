"""Catalog lookup protocol (care categories and care items)."""

from __future__ import annotations

from typing import Protocol

from ...models.catalog import CareCategory


class CatalogRepository(Protocol):
    """Pure lookups against the client's care catalog."""

    def resolve_or_create_category(self, client_id: str, name: str) -> CareCategory:
        """Return the category whose slug matches ``name``, creating it if needed."""
        ...

    def list_care_item_labels(self, client_id: str, category_id: str) -> list[str]:
        """Labels of the client's non-deleted care items in a category."""
        ...
