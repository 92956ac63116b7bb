"""Refund resolution against specific purchase lines.

A refund line names one original purchase line by ``(refund_of_trans_id,
refund_of_line_id)``. The resolver bounds the requested amount by what is
still refundable on that line: the original amount minus every non-voided
refund already booked against it in the same year, minus any earlier lines
of the request being resolved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..domain.repositories import TransactionRepository
from ..errors import (
    InvalidAmount,
    OriginalLineNotFound,
    OriginalNotFound,
    RefundExceedsOriginal,
    YearMismatch,
)
from ..models.transaction import PURCHASE
from ..money import within_epsilon

REFUND_EPSILON = 1e-6


@dataclass(frozen=True, slots=True)
class RefundRequestLine:
    refund_of_trans_id: str
    refund_of_line_id: str
    amount: float
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ResolvedRefundLine:
    """A validated refund line, booked to the original line's bucket."""

    category_id: str
    care_item_slug: str
    label: str
    amount: float
    refund_of_trans_id: str
    refund_of_line_id: str


@dataclass(frozen=True, slots=True)
class RefundableLine:
    purchase_trans_id: str
    purchase_date: datetime
    line_id: str
    category_id: str
    care_item_slug: str
    label: Optional[str]
    original_amount: float
    refunded_so_far: float
    remaining_refundable: float


def _pending_for(
    pending: Iterable[ResolvedRefundLine], trans_id: str, line_id: str
) -> float:
    return sum(
        line.amount
        for line in pending
        if line.refund_of_trans_id == trans_id and line.refund_of_line_id == line_id
    )


def resolve_refund_line(
    ledger: TransactionRepository,
    *,
    client_id: str,
    year: int,
    request: RefundRequestLine,
    pending: Sequence[ResolvedRefundLine] = (),
    epsilon: float = REFUND_EPSILON,
) -> ResolvedRefundLine:
    """Validate one refund line; raises the specific failure kind."""

    original = ledger.get_purchase(request.refund_of_trans_id, client_id=client_id)
    if original is None:
        raise OriginalNotFound()
    if original.year != year:
        raise YearMismatch()

    original_line = original.find_line(request.refund_of_line_id)
    if original_line is None:
        raise OriginalLineNotFound()

    refunded_so_far = ledger.refunded_amount(
        client_id, year, request.refund_of_trans_id, request.refund_of_line_id
    ) + _pending_for(pending, request.refund_of_trans_id, request.refund_of_line_id)
    remaining = max(0.0, original_line.amount - refunded_so_far)

    if not request.amount >= 0:
        raise InvalidAmount("Invalid refund amount")
    if not within_epsilon(request.amount, remaining, epsilon):
        raise RefundExceedsOriginal()

    return ResolvedRefundLine(
        category_id=original_line.category_id,
        care_item_slug=original_line.care_item_slug,
        label=request.label or original_line.label or original_line.care_item_slug,
        amount=request.amount,
        refund_of_trans_id=request.refund_of_trans_id,
        refund_of_line_id=request.refund_of_line_id,
    )


def resolve_refund_lines(
    ledger: TransactionRepository,
    *,
    client_id: str,
    year: int,
    requests: Sequence[RefundRequestLine],
    epsilon: float = REFUND_EPSILON,
) -> list[ResolvedRefundLine]:
    """Resolve lines in order; the first failure aborts the whole request."""

    resolved: list[ResolvedRefundLine] = []
    for request in requests:
        resolved.append(
            resolve_refund_line(
                ledger,
                client_id=client_id,
                year=year,
                request=request,
                pending=resolved,
                epsilon=epsilon,
            )
        )
    return resolved


def list_refundable_lines(
    ledger: TransactionRepository, *, client_id: str, year: int
) -> list[RefundableLine]:
    """Purchase lines of the year that still have something left to refund."""

    refunded = ledger.refund_totals(client_id, year)
    rows: list[RefundableLine] = []
    for txn in ledger.list_for_year(client_id, year):
        if txn.type != PURCHASE:
            continue
        for line in txn.lines:
            so_far = refunded.get((txn.id, line.id), 0.0)
            remaining = max(0.0, line.amount - so_far)
            if remaining <= 0:
                continue
            rows.append(
                RefundableLine(
                    purchase_trans_id=txn.id,
                    purchase_date=txn.date,
                    line_id=line.id,
                    category_id=line.category_id,
                    care_item_slug=(line.care_item_slug or "").lower(),
                    label=line.label,
                    original_amount=line.amount,
                    refunded_so_far=so_far,
                    remaining_refundable=remaining,
                )
            )
    return rows
