"""Error taxonomy shared by services and the request surface."""

from __future__ import annotations

from typing import ClassVar


class CareBudgetError(Exception):
    """Base class for every expected failure of a budget or ledger action."""

    kind: ClassVar[str] = "Error"
    status_code: ClassVar[int] = 400
    default_message: ClassVar[str] = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "kind": self.kind}


class MalformedRequest(CareBudgetError):
    kind = "MalformedRequest"
    status_code = 400
    default_message = "Malformed request body"


class Unauthorised(CareBudgetError):
    kind = "Unauthorised"
    status_code = 401
    default_message = "Sign in required"


class Forbidden(CareBudgetError):
    kind = "Forbidden"
    status_code = 403
    default_message = "Forbidden"


class PastYearReadOnly(CareBudgetError):
    kind = "PastYearReadOnly"
    status_code = 409
    default_message = "Past year is read-only"


class InvalidId(CareBudgetError):
    kind = "InvalidId"
    status_code = 422
    default_message = "Invalid id"


class InvalidAmount(CareBudgetError):
    kind = "InvalidAmount"
    status_code = 422
    default_message = "Invalid amount"


class InvalidDate(CareBudgetError):
    kind = "InvalidDate"
    status_code = 422
    default_message = "Invalid date"


class BudgetNotFound(CareBudgetError):
    kind = "BudgetNotFound"
    status_code = 404
    default_message = "Budget not found"


class CategoryNotFound(CareBudgetError):
    kind = "CategoryNotFound"
    status_code = 404
    default_message = "Category not found"


class ItemNotFound(CareBudgetError):
    kind = "ItemNotFound"
    status_code = 404
    default_message = "Care Item not found"


class OriginalNotFound(CareBudgetError):
    kind = "OriginalNotFound"
    status_code = 404
    default_message = "Original purchase not found"


class OriginalLineNotFound(CareBudgetError):
    kind = "OriginalLineNotFound"
    status_code = 404
    default_message = "Original line not found"


class ItemsExceedCategory(CareBudgetError):
    kind = "ItemsExceedCategory"
    status_code = 422
    default_message = "Care Items exceed category allocation"


class YearMismatch(CareBudgetError):
    kind = "YearMismatch"
    status_code = 409
    default_message = "Refund must be in the same year as original purchase"


class RefundExceedsOriginal(CareBudgetError):
    kind = "RefundExceedsOriginal"
    status_code = 422
    default_message = "Refund exceeds original line amount"


class AlreadyExists(CareBudgetError):
    kind = "AlreadyExists"
    status_code = 409
    default_message = "Budget for target year already exists"
