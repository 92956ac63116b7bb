"""Budget year repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.budget import BudgetYear


class BudgetYearRepository(Protocol):
    """Repository for the per-client, per-year budget document."""

    def get(self, client_id: str, year: int) -> Optional[BudgetYear]:
        """Load the document with its category/item tree, or None."""
        ...

    def get_or_create(self, client_id: str, year: int) -> BudgetYear:
        """Load the document, creating an empty one when absent."""
        ...

    def add(self, budget: BudgetYear) -> BudgetYear:
        """Stage a new or modified document for the current unit of work."""
        ...

    def list_years(self, client_id: str) -> list[int]:
        """Years with a budget for the client, newest first."""
        ...
