"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing transaction entities."""

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def list_all(self, *, user_id: int, limit: int = 100, offset: int = 0) -> list[Transaction]:
        """List transactions with pagination."""
        ...

    def filter_by_date_range(
        self, start_date: datetime, end_date: datetime, *, user_id: int
    ) -> list[Transaction]:
        """Get transactions dated within [start_date, end_date)."""
        ...

    def filter_by_account(self, account_id: int, *, user_id: int) -> list[Transaction]:
        """Get all transactions for a specific account."""
        ...

    def list_uncategorized(self, *, user_id: int) -> list[Transaction]:
        """Transactions without a primary category."""
        ...

    def search(
        self,
        *,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        pending: Optional[bool] = None,
        text: Optional[str] = None,
        user_id: int,
    ) -> list[Transaction]:
        """Advanced search with multiple filters."""
        ...

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        ...

    def update(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Update an existing transaction."""
        ...

    def update_category(self, transaction_id: int, category: str, *, user_id: int) -> bool:
        """Write the primary category; True when the row changed."""
        ...

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Delete a transaction by ID."""
        ...
