"""Care category and care item catalog tables."""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..ids import new_id


class CareCategory(SQLModel, table=True):
    """Per-client care category, unique by slug."""

    __tablename__: ClassVar[str] = "care_category"
    __table_args__ = (UniqueConstraint("client_id", "slug", name="uq_care_category_client_slug"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=24)
    client_id: str = Field(nullable=False, index=True, max_length=24)
    name: str = Field(nullable=False, max_length=128)
    slug: str = Field(nullable=False, index=True, max_length=128)


class CareItem(SQLModel, table=True):
    """Catalog entry for something a carer buys or does for a client."""

    __tablename__: ClassVar[str] = "care_item"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=24)
    client_id: str = Field(nullable=False, index=True, max_length=24)
    category_id: str = Field(nullable=False, index=True, max_length=24)
    label: str = Field(nullable=False, max_length=255)
    slug: str = Field(nullable=False, index=True, max_length=128)
    deleted: bool = Field(default=False, nullable=False)
