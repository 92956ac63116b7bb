"""Budget manage-action form validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ...errors import CareBudgetError, MalformedRequest
from ...ids import parse_id
from ...money import parse_amount
from ...services.budget_store import (
    BudgetAction,
    ReleaseCategory,
    ReleaseItem,
    RolloverFromPrev,
    SetAnnual,
    SetCategory,
    SetItem,
)


def _parse_year(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or value is None:
        raise MalformedRequest(f"{field_name} is required")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise MalformedRequest(f"{field_name} must be an integer")


def _parse_flag(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise MalformedRequest("Rollover options must be booleans")


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedRequest("Expected a string")
    return value.strip() or None


def _required_slug(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedRequest("careItemSlug is required")
    return value.strip().lower()


@dataclass(slots=True)
class BudgetActionForm:
    """Turns a tagged ``{"action": ...}`` body into a ``BudgetAction``."""

    action: Optional[BudgetAction] = None
    errors: dict[str, list[str]] = field(default_factory=dict, init=False)
    raw_data: dict[str, Any] = field(default_factory=dict, init=False)
    _failure: Optional[CareBudgetError] = field(default=None, init=False, repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BudgetActionForm:
        form = cls()
        form.raw_data = dict(data)
        return form

    def validate(self) -> bool:
        self.errors.clear()
        self._failure = None
        self.action = None

        name = self.raw_data.get("action")
        builder = _BUILDERS.get(name) if isinstance(name, str) else None
        if builder is None:
            self._record("action", MalformedRequest("Invalid action"))
            return False

        try:
            self.action = builder(self.raw_data)
        except CareBudgetError as exc:
            self._record(name, exc)
            return False
        return True

    def action_or_raise(self) -> BudgetAction:
        """Return the parsed action, or raise the first validation failure."""

        if self.action is None:
            self.validate()
        if self.action is None:
            raise self._failure or MalformedRequest("Invalid action")
        return self.action

    def _record(self, field_name: str, error: CareBudgetError) -> None:
        self.errors.setdefault(field_name, []).append(error.message)
        if self._failure is None:
            self._failure = error


def _set_annual(data: Mapping[str, Any]) -> SetAnnual:
    return SetAnnual(
        year=_parse_year(data.get("year"), field_name="year"),
        amount=parse_amount(data.get("amount")),
    )


def _set_category(data: Mapping[str, Any]) -> SetCategory:
    raw_id = data.get("categoryId")
    category_id = None if raw_id in (None, "") else parse_id(raw_id, field="categoryId")
    category_name = _optional_text(data.get("categoryName"))
    if category_id is None and category_name is None:
        raise MalformedRequest("categoryId or categoryName is required")
    return SetCategory(
        year=_parse_year(data.get("year"), field_name="year"),
        amount=parse_amount(data.get("amount")),
        category_id=category_id,
        category_name=category_name,
    )


def _set_item(data: Mapping[str, Any]) -> SetItem:
    return SetItem(
        year=_parse_year(data.get("year"), field_name="year"),
        category_id=parse_id(data.get("categoryId"), field="categoryId"),
        care_item_slug=_required_slug(data.get("careItemSlug")),
        amount=parse_amount(data.get("amount")),
        label=_optional_text(data.get("label")),
    )


def _release_category(data: Mapping[str, Any]) -> ReleaseCategory:
    return ReleaseCategory(
        year=_parse_year(data.get("year"), field_name="year"),
        category_id=parse_id(data.get("categoryId"), field="categoryId"),
    )


def _release_item(data: Mapping[str, Any]) -> ReleaseItem:
    return ReleaseItem(
        year=_parse_year(data.get("year"), field_name="year"),
        category_id=parse_id(data.get("categoryId"), field="categoryId"),
        care_item_slug=_required_slug(data.get("careItemSlug")),
    )


def _rollover_from_prev(data: Mapping[str, Any]) -> RolloverFromPrev:
    target = data.get("toYear", data.get("year"))
    return RolloverFromPrev(
        year=_parse_year(target, field_name="toYear"),
        from_year=_parse_year(data.get("fromYear"), field_name="fromYear"),
        copy_categories=_parse_flag(data.get("copyCategories"), default=True),
        bring_surplus=_parse_flag(data.get("bringSurplus"), default=True),
        overwrite_if_exists=_parse_flag(data.get("overwriteIfExists"), default=False),
        reset_item_allocations=_parse_flag(data.get("resetItemAllocations"), default=False),
    )


_BUILDERS: dict[str, Callable[[Mapping[str, Any]], BudgetAction]] = {
    "setAnnual": _set_annual,
    "setCategory": _set_category,
    "setItem": _set_item,
    "releaseCategory": _release_category,
    "releaseItem": _release_item,
    "rolloverFromPrev": _rollover_from_prev,
}
