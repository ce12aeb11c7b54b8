"""SQLModel implementation of the category rule repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.category_rule import UserCategoryRule


class SQLModelCategoryRuleRepository:
    """SQLModel-based category rule repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, rule_id: int, *, user_id: int) -> Optional[UserCategoryRule]:
        """Retrieve a rule by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(UserCategoryRule).where(
                    UserCategoryRule.id == rule_id, UserCategoryRule.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int) -> list[UserCategoryRule]:
        """List a user's rules in evaluation order."""
        with self.session_factory() as session:
            statement = (
                select(UserCategoryRule)
                .where(UserCategoryRule.user_id == user_id)
                .order_by(
                    UserCategoryRule.priority,  # type: ignore
                    UserCategoryRule.created_at,  # type: ignore
                    UserCategoryRule.id,  # type: ignore
                )
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, rule: UserCategoryRule, *, user_id: int) -> UserCategoryRule:
        """Create a new rule."""
        with self.session_factory() as session:
            rule.user_id = user_id
            session.add(rule)
            session.commit()
            session.refresh(rule)
            session.expunge(rule)
            return rule

    def update(self, rule: UserCategoryRule, *, user_id: int) -> UserCategoryRule:
        """Update an existing rule."""
        with self.session_factory() as session:
            rule.user_id = user_id
            rule.updated_at = datetime.now(timezone.utc)
            merged = session.merge(rule)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, rule_id: int, *, user_id: int) -> None:
        """Delete a rule by ID."""
        with self.session_factory() as session:
            rule = session.exec(
                select(UserCategoryRule).where(
                    UserCategoryRule.id == rule_id, UserCategoryRule.user_id == user_id
                )
            ).first()
            if rule:
                session.delete(rule)
                session.commit()
