"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from ...models.transaction import Transaction


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation.

    Date filters use half-open ranges: ``start_date`` is inclusive and
    ``end_date`` is exclusive.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, limit: int = 100, offset: int = 0) -> list[Transaction]:
        """List transactions newest first with pagination."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(Transaction.date.desc(), Transaction.id.desc())  # type: ignore
                .offset(offset)
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def filter_by_date_range(
        self, start_date: datetime, end_date: datetime, *, user_id: int
    ) -> list[Transaction]:
        """Get transactions dated within [start_date, end_date)."""
        return self.search(start_date=start_date, end_date=end_date, user_id=user_id)

    def filter_by_account(self, account_id: int, *, user_id: int) -> list[Transaction]:
        """Get all transactions for a specific account."""
        return self.search(account_id=account_id, user_id=user_id)

    def list_uncategorized(self, *, user_id: int) -> list[Transaction]:
        """Transactions that carry no primary category yet."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.primary_category.is_(None))  # type: ignore
                .order_by(Transaction.date, Transaction.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def search(
        self,
        *,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        account_id: Optional[int] = None,
        category: Optional[str] = None,
        pending: Optional[bool] = None,
        text: Optional[str] = None,
        user_id: int,
    ) -> list[Transaction]:
        """Advanced search with multiple filters, oldest first."""
        with self.session_factory() as session:
            statement = select(Transaction).where(Transaction.user_id == user_id)

            if start_date is not None:
                statement = statement.where(Transaction.date >= start_date)
            if end_date is not None:
                statement = statement.where(Transaction.date < end_date)
            if account_id is not None:
                statement = statement.where(Transaction.account_id == account_id)
            if category is not None:
                statement = statement.where(Transaction.primary_category == category)
            if pending is not None:
                statement = statement.where(Transaction.pending == pending)
            if text:
                statement = statement.where(
                    or_(
                        Transaction.name.contains(text),  # type: ignore
                        Transaction.merchant_name.contains(text),  # type: ignore
                    )
                )

            statement = statement.order_by(Transaction.date, Transaction.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            transaction.user_id = user_id
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            session.expunge(transaction)
            return transaction

    def update(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Update an existing transaction."""
        with self.session_factory() as session:
            transaction.user_id = user_id
            merged = session.merge(transaction)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def update_category(self, transaction_id: int, category: str, *, user_id: int) -> bool:
        """Write ``primary_category`` only.

        Returns False when the transaction does not exist for the user or
        already carries the category.
        """
        with self.session_factory() as session:
            transaction = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if transaction is None or transaction.primary_category == category:
                return False
            transaction.primary_category = category
            session.add(transaction)
            session.commit()
            return True

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Delete a transaction by ID."""
        with self.session_factory() as session:
            transaction = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if transaction:
                session.delete(transaction)
                session.commit()
