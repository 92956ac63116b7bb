"""SQLModel implementation of the ledger repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col, select

from ...models.transaction import PURCHASE, REFUND, Transaction, TransactionLine


class SQLModelTransactionRepository:
    """Ledger repository bound to one unit-of-work session."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, transaction: Transaction) -> Transaction:
        for position, line in enumerate(transaction.lines):
            line.position = position
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def get_purchase(self, transaction_id: str, *, client_id: str) -> Optional[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .where(Transaction.client_id == client_id)
            .where(Transaction.type == PURCHASE)
            .where(col(Transaction.voided_at).is_(None))
            .options(selectinload(Transaction.lines))
        )
        return self.session.exec(statement).first()

    def list_for_year(self, client_id: str, year: int) -> list[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.client_id == client_id)
            .where(Transaction.year == year)
            .where(col(Transaction.voided_at).is_(None))
            .options(selectinload(Transaction.lines))
            .order_by(col(Transaction.date).desc(), col(Transaction.created_at).desc())
        )
        return list(self.session.exec(statement).all())

    def sum_by_type(self, client_id: str, year: int) -> dict[str, float]:
        statement = (
            select(Transaction.type, func.sum(TransactionLine.amount))
            .join(TransactionLine, col(TransactionLine.transaction_id) == Transaction.id)
            .where(Transaction.client_id == client_id)
            .where(Transaction.year == year)
            .where(col(Transaction.voided_at).is_(None))
            .group_by(Transaction.type)
        )
        totals = {PURCHASE: 0.0, REFUND: 0.0}
        for txn_type, total in self.session.exec(statement).all():
            totals[txn_type] = float(total or 0.0)
        return totals

    def refunded_amount(
        self, client_id: str, year: int, refund_of_trans_id: str, refund_of_line_id: str
    ) -> float:
        statement = (
            select(func.sum(TransactionLine.amount))
            .join(Transaction, col(TransactionLine.transaction_id) == Transaction.id)
            .where(Transaction.client_id == client_id)
            .where(Transaction.year == year)
            .where(Transaction.type == REFUND)
            .where(col(Transaction.voided_at).is_(None))
            .where(TransactionLine.refund_of_trans_id == refund_of_trans_id)
            .where(TransactionLine.refund_of_line_id == refund_of_line_id)
        )
        total = self.session.exec(statement).one()
        return float(total or 0.0)

    def refund_totals(self, client_id: str, year: int) -> dict[tuple[str, str], float]:
        statement = (
            select(
                TransactionLine.refund_of_trans_id,
                TransactionLine.refund_of_line_id,
                func.sum(TransactionLine.amount),
            )
            .join(Transaction, col(TransactionLine.transaction_id) == Transaction.id)
            .where(Transaction.client_id == client_id)
            .where(Transaction.year == year)
            .where(Transaction.type == REFUND)
            .where(col(Transaction.voided_at).is_(None))
            .group_by(TransactionLine.refund_of_trans_id, TransactionLine.refund_of_line_id)
        )
        return {
            (str(trans_id), str(line_id)): float(total or 0.0)
            for trans_id, line_id, total in self.session.exec(statement).all()
        }

    def lines_for_year(
        self, client_id: str, year: int, *, category_id: Optional[str] = None
    ) -> list[tuple[str, TransactionLine]]:
        statement = (
            select(Transaction.type, TransactionLine)
            .select_from(TransactionLine)
            .join(Transaction, col(TransactionLine.transaction_id) == Transaction.id)
            .where(Transaction.client_id == client_id)
            .where(Transaction.year == year)
            .where(col(Transaction.voided_at).is_(None))
            .order_by(
                col(Transaction.date),
                col(Transaction.created_at),
                col(TransactionLine.position),
            )
        )
        if category_id is not None:
            statement = statement.where(TransactionLine.category_id == category_id)
        return [(txn_type, line) for txn_type, line in self.session.exec(statement).all()]
