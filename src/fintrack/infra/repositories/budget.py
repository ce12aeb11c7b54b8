"""SQLModel implementation of Budget repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.budget import Budget


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[Budget]:
        """List a user's budgets, optionally only the active ones."""
        with self.session_factory() as session:
            statement = select(Budget).where(Budget.user_id == user_id)
            if active_only:
                statement = statement.where(Budget.is_active == True)  # noqa: E712
            statement = statement.order_by(Budget.category, Budget.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            session.add(budget)
            session.commit()
            session.refresh(budget)
            session.expunge(budget)
            return budget

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            budget.updated_at = datetime.now(timezone.utc)
            merged = session.merge(budget)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget by ID."""
        with self.session_factory() as session:
            budget = session.exec(
                select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
            ).first()
            if budget:
                session.delete(budget)
                session.commit()
