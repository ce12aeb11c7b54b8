"""Budget repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.budget import Budget


class BudgetRepository(Protocol):
    """Repository for managing budget entities."""

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        ...

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[Budget]:
        """List a user's budgets."""
        ...

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        ...

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        ...

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget by ID."""
        ...
