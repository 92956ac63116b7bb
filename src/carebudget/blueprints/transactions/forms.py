"""Transaction form validation helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from ...errors import CareBudgetError, InvalidDate, MalformedRequest
from ...ids import parse_id
from ...models.transaction import PURCHASE, REFUND, TRANSACTION_TYPES
from ...money import parse_amount
from ...services.ledger_service import PurchaseLineInput
from ...services.refunds import RefundRequestLine


def parse_transaction_date(raw: Any) -> datetime:
    """Parse ``YYYY-MM-DD`` or an ISO-8601 timestamp into an aware UTC datetime."""

    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDate()
    text = raw.strip()
    try:
        if len(text) == 10:
            parsed = datetime.strptime(text, "%Y-%m-%d")
        else:
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDate() from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedRequest("Expected a string")
    return value.strip() or None


@dataclass(slots=True)
class TransactionForm:
    """Represents a Purchase or Refund body prior to validation."""

    type: str = ""
    date: Optional[datetime] = None
    made_by_user_id: Optional[str] = None
    receipt_url: Optional[str] = None
    note: Optional[str] = None
    purchase_lines: list[PurchaseLineInput] = field(default_factory=list)
    refund_lines: list[RefundRequestLine] = field(default_factory=list)
    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, Any] = field(default_factory=dict, init=False)
    _failure: Optional[CareBudgetError] = field(default=None, init=False, repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, default_user_id: Optional[str] = None) -> TransactionForm:
        form = cls()
        form.raw_data = dict(data)
        if form.raw_data.get("madeByUserId") in (None, "") and default_user_id:
            form.raw_data["madeByUserId"] = default_user_id
        return form

    def validate(self) -> bool:
        """Validate the bound data and populate typed attributes."""

        self.errors.clear()
        self._failure = None
        self.purchase_lines = []
        self.refund_lines = []

        raw_type = self.raw_data.get("type")
        self.type = raw_type if isinstance(raw_type, str) else ""
        if self.type not in TRANSACTION_TYPES:
            self._record("type", MalformedRequest("type must be Purchase or Refund"))

        try:
            self.date = parse_transaction_date(self.raw_data.get("date"))
        except CareBudgetError as exc:
            self._record("date", exc)

        try:
            self.made_by_user_id = parse_id(self.raw_data.get("madeByUserId"), field="madeByUserId")
        except CareBudgetError as exc:
            self._record("madeByUserId", exc)

        try:
            self.receipt_url = _optional_text(self.raw_data.get("receiptUrl"))
            self.note = _optional_text(self.raw_data.get("note"))
        except CareBudgetError as exc:
            self._record("receiptUrl", exc)

        lines = self.raw_data.get("lines") or []
        if not isinstance(lines, list):
            self._record("lines", MalformedRequest("lines must be a list"))
            lines = []

        for index, raw_line in enumerate(lines):
            key = f"lines[{index}]"
            if not isinstance(raw_line, Mapping):
                self._record(key, MalformedRequest("Each line must be an object"))
                continue
            try:
                if self.type == PURCHASE:
                    self.purchase_lines.append(_purchase_line(raw_line))
                elif self.type == REFUND:
                    self.refund_lines.append(_refund_line(raw_line))
            except CareBudgetError as exc:
                self._record(key, exc)

        return not self.errors

    def raise_first_error(self) -> None:
        if self._failure is not None:
            raise self._failure

    def _record(self, key: str, error: CareBudgetError) -> None:
        self.errors.setdefault(key, []).append(error.message)
        if self._failure is None:
            self._failure = error


def _purchase_line(data: Mapping[str, Any]) -> PurchaseLineInput:
    slug = data.get("careItemSlug")
    label = _optional_text(data.get("label"))
    if slug is not None and not isinstance(slug, str):
        raise MalformedRequest("careItemSlug must be a string")
    if not (slug or "").strip() and label is None:
        raise MalformedRequest("careItemSlug is required")
    return PurchaseLineInput(
        category_id=parse_id(data.get("categoryId"), field="categoryId"),
        care_item_slug=(slug or "").strip(),
        amount=parse_amount(data.get("amount")),
        label=label,
    )


def _refund_line(data: Mapping[str, Any]) -> RefundRequestLine:
    return RefundRequestLine(
        refund_of_trans_id=parse_id(data.get("refundOfTransId"), field="refundOfTransId"),
        refund_of_line_id=parse_id(data.get("refundOfLineId"), field="refundOfLineId"),
        amount=parse_amount(data.get("amount"), field="refund amount"),
        label=_optional_text(data.get("label")),
    )
