"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Repository for managing account entities."""

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        ...

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[Account]:
        """List a user's accounts."""
        ...

    def create(self, account: Account, *, user_id: int) -> Account:
        """Create a new account."""
        ...

    def update(self, account: Account, *, user_id: int) -> Account:
        """Update an existing account."""
        ...

    def delete(self, account_id: int, *, user_id: int) -> None:
        """Delete an account by ID."""
        ...
