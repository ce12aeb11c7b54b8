"""SQLModel implementation of the savings goal repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.savings_goal import SavingsGoal


class SQLModelSavingsGoalRepository:
    """SQLModel-based savings goal repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[SavingsGoal]:
        """Retrieve a goal by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(SavingsGoal).where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[SavingsGoal]:
        """List a user's goals newest first."""
        with self.session_factory() as session:
            statement = select(SavingsGoal).where(SavingsGoal.user_id == user_id)
            if active_only:
                statement = statement.where(SavingsGoal.is_active == True)  # noqa: E712
            statement = statement.order_by(
                SavingsGoal.created_at.desc(), SavingsGoal.id.desc()  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        """Create a new goal."""
        with self.session_factory() as session:
            goal.user_id = user_id
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def update(self, goal: SavingsGoal, *, user_id: int) -> SavingsGoal:
        """Update an existing goal."""
        with self.session_factory() as session:
            goal.user_id = user_id
            goal.updated_at = datetime.now(timezone.utc)
            merged = session.merge(goal)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def set_completed(self, goal_id: int, is_completed: bool, *, user_id: int) -> bool:
        """Write ``is_completed`` only; returns True when the flag changed."""
        with self.session_factory() as session:
            goal = session.exec(
                select(SavingsGoal).where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
            ).first()
            if goal is None or goal.is_completed == is_completed:
                return False
            goal.is_completed = is_completed
            session.add(goal)
            session.commit()
            return True

    def delete(self, goal_id: int, *, user_id: int) -> None:
        """Delete a goal by ID."""
        with self.session_factory() as session:
            goal = session.exec(
                select(SavingsGoal).where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
            ).first()
            if goal:
                session.delete(goal)
                session.commit()
