"""SQLModel implementation of User repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.user import SyncStatus, User


class SQLModelUserRepository:
    """SQLModel-based user repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email address."""
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.email == email)).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_ids(self) -> list[int]:
        """Return every user id; users are the batch partition key."""
        with self.session_factory() as session:
            return list(session.exec(select(User.id).order_by(User.id)).all())

    def create(self, user: User) -> User:
        """Create a new user."""
        with self.session_factory() as session:
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def update(self, user: User) -> User:
        """Update an existing user."""
        with self.session_factory() as session:
            user.updated_at = datetime.now(timezone.utc)
            merged = session.merge(user)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def update_sync_status(
        self,
        user_id: int,
        status: SyncStatus,
        *,
        synced_at: Optional[datetime] = None,
    ) -> Optional[User]:
        """Record the bank-sync job's progress for a user."""
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            user.sync_status = status
            if synced_at is not None:
                user.last_sync_at = synced_at
            user.updated_at = datetime.now(timezone.utc)
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def delete(self, user_id: int) -> None:
        """Delete a user; owned rows go with it via ON DELETE CASCADE."""
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if user:
                session.delete(user)
                session.commit()
