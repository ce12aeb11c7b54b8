"""Savings goal repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.savings_goal import SavingsGoal


class SavingsGoalRepository(Protocol):
    """Repository for managing savings goals."""

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[SavingsGoal]:
        """Retrieve a goal by ID."""
        ...

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[SavingsGoal]:
        """List a user's goals."""
        ...

    def create(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        """Create a new goal."""
        ...

    def update(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        """Update an existing goal."""
        ...

    def set_completed(self, goal_id: int, is_completed: bool, *, user_id: int) -> bool:
        """Write the completion flag; True when it changed."""
        ...

    def delete(self, goal_id: int, *, user_id: int) -> None:
        """Delete a goal by ID."""
        ...
