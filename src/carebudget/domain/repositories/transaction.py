"""Ledger repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.transaction import Transaction, TransactionLine


class TransactionRepository(Protocol):
    """Append-only access to Purchase/Refund records.

    Every query excludes voided transactions.
    """

    def append(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction with its lines."""
        ...

    def get_purchase(self, transaction_id: str, *, client_id: str) -> Optional[Transaction]:
        """Return a non-voided Purchase owned by the client."""
        ...

    def list_for_year(self, client_id: str, year: int) -> list[Transaction]:
        """Non-voided transactions for the year, newest first."""
        ...

    def sum_by_type(self, client_id: str, year: int) -> dict[str, float]:
        """Total line amounts grouped by transaction type."""
        ...

    def refunded_amount(
        self, client_id: str, year: int, refund_of_trans_id: str, refund_of_line_id: str
    ) -> float:
        """Sum of refund lines pointing at one original purchase line."""
        ...

    def refund_totals(self, client_id: str, year: int) -> dict[tuple[str, str], float]:
        """Refunded amount per (original transaction id, original line id)."""
        ...

    def lines_for_year(
        self, client_id: str, year: int, *, category_id: Optional[str] = None
    ) -> list[tuple[str, TransactionLine]]:
        """(transaction type, line) pairs, oldest first, optionally for one category."""
        ...
