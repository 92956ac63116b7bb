"""SQLModel definitions for the append-only purchase/refund ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..ids import new_id

PURCHASE = "Purchase"
REFUND = "Refund"
TRANSACTION_TYPES = (PURCHASE, REFUND)


class Transaction(SQLModel, table=True):
    """A Purchase or Refund with one or more itemised lines.

    Rows are never edited after insert; ``voided_at`` is the only mutable
    field and voided rows are excluded from every aggregate.
    """

    __tablename__: ClassVar[str] = "ledger_transaction"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=24)
    client_id: str = Field(nullable=False, index=True, max_length=24)
    year: int = Field(nullable=False, index=True)
    date: datetime = Field(sa_type=DateTime(timezone=True), nullable=False, index=True)
    type: str = Field(nullable=False, index=True, max_length=16)
    made_by_user_id: str = Field(nullable=False, max_length=24)
    receipt_url: Optional[str] = Field(default=None, max_length=512)
    note: Optional[str] = Field(default=None, max_length=1024)
    voided_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True), index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )

    lines: list["TransactionLine"] = Relationship(
        back_populates="transaction",
        sa_relationship=relationship(
            "TransactionLine",
            back_populates="transaction",
            order_by="TransactionLine.position",
            cascade="all, delete-orphan",
        ),
    )

    @property
    def total(self) -> float:
        return sum(line.amount for line in self.lines)

    def find_line(self, line_id: str) -> Optional["TransactionLine"]:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None


class TransactionLine(SQLModel, table=True):
    """One itemised entry; refund lines point at exactly one purchase line."""

    __tablename__: ClassVar[str] = "ledger_line"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=24)
    transaction_id: Optional[str] = Field(
        default=None, foreign_key="ledger_transaction.id", nullable=False, index=True
    )
    position: int = Field(default=0, nullable=False)
    category_id: str = Field(nullable=False, index=True, max_length=24)
    care_item_slug: str = Field(nullable=False, index=True, max_length=128)
    label: str = Field(default="", max_length=255)
    amount: float = Field(nullable=False)
    refund_of_trans_id: Optional[str] = Field(default=None, index=True, max_length=24)
    refund_of_line_id: Optional[str] = Field(default=None, index=True, max_length=24)

    transaction: Optional[Transaction] = Relationship(
        back_populates="lines",
        sa_relationship=relationship("Transaction", back_populates="lines"),
    )
