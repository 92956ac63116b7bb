"""Purchase and refund recording for the client ledger."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..errors import InvalidAmount, MalformedRequest, PastYearReadOnly
from ..infra.database import SessionFactory
from ..infra.repositories import SQLModelBudgetYearRepository, SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.transaction import PURCHASE, REFUND, Transaction, TransactionLine
from ..slugs import normalize_slug
from .clock import Clock, current_year, utc_now
from .locks import BUDGET_LOCKS, KeyedLocks
from .notifications import ChangePublisher, safe_publish
from .recompute import recompute_spend_totals
from .refunds import (
    REFUND_EPSILON,
    RefundableLine,
    RefundRequestLine,
    list_refundable_lines,
    resolve_refund_lines,
)

logger = get_logger("ledger")


@dataclass(frozen=True, slots=True)
class PurchaseLineInput:
    category_id: str
    care_item_slug: str
    amount: float
    label: Optional[str] = None


def transaction_year(value: datetime) -> int:
    """Calendar year of ``value`` in UTC; naive values are taken as UTC."""

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.year


def as_utc(value: datetime) -> datetime:
    """Aware UTC copy of ``value``; naive values are taken as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Ledger:
    """Append Purchase/Refund records and keep the year's spend totals current."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        publisher: Optional[ChangePublisher] = None,
        clock: Clock = utc_now,
        locks: KeyedLocks = BUDGET_LOCKS,
        refund_epsilon: float = REFUND_EPSILON,
    ) -> None:
        self.session_factory = session_factory
        self.publisher = publisher
        self.clock = clock
        self.locks = locks
        self.refund_epsilon = refund_epsilon

    def _writable_year(self, date: datetime) -> int:
        year = transaction_year(date)
        if year < current_year(self.clock):
            raise PastYearReadOnly()
        return year

    def record_purchase(
        self,
        client_id: str,
        *,
        date: datetime,
        made_by_user_id: str,
        lines: Sequence[PurchaseLineInput],
        receipt_url: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Transaction:
        year = self._writable_year(date)
        if not lines:
            raise MalformedRequest("At least one line required")
        for line in lines:
            if not isinstance(line.amount, (int, float)) or math.isnan(line.amount) or line.amount < 0:
                raise InvalidAmount()

        transaction = Transaction(
            client_id=client_id,
            year=year,
            date=as_utc(date),
            type=PURCHASE,
            made_by_user_id=made_by_user_id,
            receipt_url=receipt_url,
            note=note,
            lines=[
                TransactionLine(
                    category_id=line.category_id,
                    care_item_slug=normalize_slug(line.care_item_slug, line.label),
                    label=line.label or line.care_item_slug,
                    amount=float(line.amount),
                )
                for line in lines
            ],
        )

        with self.locks.hold(client_id, year):
            with self.session_factory() as session:
                ledger = SQLModelTransactionRepository(session)
                ledger.append(transaction)
                # A purchase never grows the surplus.
                recompute_spend_totals(
                    budgets=SQLModelBudgetYearRepository(session),
                    ledger=ledger,
                    client_id=client_id,
                    year=year,
                    refund_delta=0.0,
                    clock=self.clock,
                )

        logger.info(
            "Purchase recorded",
            extra={
                "client_id": client_id,
                "year": year,
                "transaction_id": transaction.id,
                "lines": len(lines),
                "total": transaction.total,
            },
        )
        safe_publish(self.publisher, client_id, year)
        return transaction

    def record_refund(
        self,
        client_id: str,
        *,
        date: datetime,
        made_by_user_id: str,
        lines: Sequence[RefundRequestLine],
        receipt_url: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Transaction:
        year = self._writable_year(date)
        if not lines:
            raise MalformedRequest("At least one refund line required")

        with self.locks.hold(client_id, year):
            with self.session_factory() as session:
                ledger = SQLModelTransactionRepository(session)
                resolved = resolve_refund_lines(
                    ledger,
                    client_id=client_id,
                    year=year,
                    requests=lines,
                    epsilon=self.refund_epsilon,
                )
                transaction = Transaction(
                    client_id=client_id,
                    year=year,
                    date=as_utc(date),
                    type=REFUND,
                    made_by_user_id=made_by_user_id,
                    receipt_url=receipt_url,
                    note=note,
                    lines=[
                        TransactionLine(
                            category_id=line.category_id,
                            care_item_slug=line.care_item_slug,
                            label=line.label,
                            amount=line.amount,
                            refund_of_trans_id=line.refund_of_trans_id,
                            refund_of_line_id=line.refund_of_line_id,
                        )
                        for line in resolved
                    ],
                )
                ledger.append(transaction)
                refund_delta = sum(line.amount for line in resolved)
                recompute_spend_totals(
                    budgets=SQLModelBudgetYearRepository(session),
                    ledger=ledger,
                    client_id=client_id,
                    year=year,
                    refund_delta=refund_delta,
                    clock=self.clock,
                )

        logger.info(
            "Refund recorded",
            extra={
                "client_id": client_id,
                "year": year,
                "transaction_id": transaction.id,
                "lines": len(resolved),
                "refund_delta": refund_delta,
            },
        )
        safe_publish(self.publisher, client_id, year)
        return transaction

    def list_transactions(self, client_id: str, year: int) -> list[Transaction]:
        with self.session_factory() as session:
            return SQLModelTransactionRepository(session).list_for_year(client_id, year)

    def refundable_lines(self, client_id: str, year: int) -> list[RefundableLine]:
        with self.session_factory() as session:
            return list_refundable_lines(
                SQLModelTransactionRepository(session), client_id=client_id, year=year
            )
