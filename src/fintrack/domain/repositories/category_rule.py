"""Category rule repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.category_rule import UserCategoryRule


class CategoryRuleRepository(Protocol):
    """Repository for user-managed categorization rules."""

    def get_by_id(self, rule_id: int, *, user_id: int) -> Optional[UserCategoryRule]:
        """Retrieve a rule by ID."""
        ...

    def list_for_user(self, *, user_id: int) -> list[UserCategoryRule]:
        """List a user's rules."""
        ...

    def create(self, rule: UserCategoryRule, *, user_id: int) -> UserCategoryRule:
        """Create a new rule."""
        ...

    def update(self, rule: UserCategoryRule, *, user_id: int) -> UserCategoryRule:
        """Update an existing rule."""
        ...

    def delete(self, rule_id: int, *, user_id: int) -> None:
        """Delete a rule by ID."""
        ...
