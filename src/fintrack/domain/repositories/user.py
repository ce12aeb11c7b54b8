"""User repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.user import SyncStatus, User


class UserRepository(Protocol):
    """Repository for managing users."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address."""
        ...

    def list_ids(self) -> list[int]:
        """Return every user id."""
        ...

    def create(self, user: User) -> User:
        """Create a new user."""
        ...

    def update(self, user: User) -> User:
        """Update an existing user."""
        ...

    def update_sync_status(
        self, user_id: int, status: SyncStatus, *, synced_at: Optional[datetime] = None
    ) -> Optional[User]:
        """Record bank-sync progress."""
        ...

    def delete(self, user_id: int) -> None:
        """Delete a user by ID."""
        ...
