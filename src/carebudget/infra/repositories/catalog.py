"""SQLModel implementation of the care catalog lookups."""

from __future__ import annotations

from sqlmodel import Session, select

from ...errors import MalformedRequest
from ...models.catalog import CareCategory, CareItem
from ...slugs import slugify


class SQLModelCatalogRepository:
    """Catalog repository bound to one unit-of-work session."""

    def __init__(self, session: Session):
        self.session = session

    def resolve_or_create_category(self, client_id: str, name: str) -> CareCategory:
        cleaned = (name or "").strip()
        slug = slugify(cleaned)
        if not slug:
            raise MalformedRequest("Category name is required")
        existing = self.session.exec(
            select(CareCategory)
            .where(CareCategory.client_id == client_id)
            .where(CareCategory.slug == slug)
        ).first()
        if existing is not None:
            return existing
        category = CareCategory(client_id=client_id, name=cleaned, slug=slug)
        self.session.add(category)
        self.session.flush()
        return category

    def list_care_item_labels(self, client_id: str, category_id: str) -> list[str]:
        statement = (
            select(CareItem.label)
            .where(CareItem.client_id == client_id)
            .where(CareItem.category_id == category_id)
            .where(CareItem.deleted == False)  # noqa: E712
        )
        return [label for label in self.session.exec(statement).all() if label]
