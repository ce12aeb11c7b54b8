"""SQLModel implementation of Account repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.account import Account


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Account).where(Account.id == account_id, Account.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_for_user(self, *, user_id: int, active_only: bool = False) -> list[Account]:
        """List a user's accounts by name."""
        with self.session_factory() as session:
            statement = select(Account).where(Account.user_id == user_id)
            if active_only:
                statement = statement.where(Account.is_active == True)  # noqa: E712
            statement = statement.order_by(Account.name)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, account: Account, *, user_id: int) -> Account:
        """Create a new account."""
        with self.session_factory() as session:
            account.user_id = user_id
            session.add(account)
            session.commit()
            session.refresh(account)
            session.expunge(account)
            return account

    def update(self, account: Account, *, user_id: int) -> Account:
        """Update an existing account."""
        with self.session_factory() as session:
            account.user_id = user_id
            account.last_updated_at = datetime.now(timezone.utc)
            merged = session.merge(account)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, account_id: int, *, user_id: int) -> None:
        """Delete an account and, through the cascade, its transactions."""
        with self.session_factory() as session:
            account = session.exec(
                select(Account).where(Account.id == account_id, Account.user_id == user_id)
            ).first()
            if account:
                session.delete(account)
                session.commit()
