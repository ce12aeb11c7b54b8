"""SQLModel definitions for bank transactions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover - import guard for circular dependency
    from .account import Account
    from .user import User


class Transaction(SQLModel, table=True):
    """A settled or pending transaction ingested from the bank feed.

    Amounts follow the feed's sign convention: positive for money leaving the
    account, negative for refunds and income. Only the classification fields
    (``primary_category``, ``detailed_category``, ``categories``, ``notes``)
    are written after ingestion.
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    plaid_transaction_id: str = Field(nullable=False, unique=True, max_length=128)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", nullable=False, index=True)
    account_id: int = Field(
        foreign_key="account.id", ondelete="CASCADE", nullable=False, index=True
    )
    name: str = Field(nullable=False, max_length=255)
    merchant_name: Optional[str] = Field(default=None, max_length=255)
    amount: float = Field(nullable=False, description="Positive for outflow, negative for inflow")
    date: datetime = Field(nullable=False, index=True)
    authorized_date: Optional[datetime] = Field(default=None)
    pending: bool = Field(default=False, nullable=False)
    city: Optional[str] = Field(default=None, max_length=128)
    region: Optional[str] = Field(default=None, max_length=64)
    country: Optional[str] = Field(default=None, max_length=8)

    primary_category: Optional[str] = Field(default=None, index=True, max_length=128)
    detailed_category: Optional[str] = Field(default=None, max_length=128)
    categories: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=True))
    notes: Optional[str] = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    account: "Account" = Relationship(
        sa_relationship=relationship("Account", back_populates="transactions"),
    )
    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="transactions"))
