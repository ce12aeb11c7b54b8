"""Bank account model populated by the bank-sync collaborator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .transaction import Transaction
    from .user import User


class Account(SQLModel, table=True):
    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", nullable=False, index=True)
    plaid_account_id: str = Field(nullable=False, unique=True, max_length=128)
    name: str = Field(nullable=False, max_length=128)
    official_name: Optional[str] = Field(default=None, max_length=255)
    type: str = Field(nullable=False, max_length=32)
    subtype: str = Field(default="", max_length=32)
    mask: Optional[str] = Field(default=None, max_length=8)
    current_balance: float = Field(default=0.0, nullable=False)
    available_balance: Optional[float] = Field(default=None)
    credit_limit: Optional[float] = Field(default=None)
    is_active: bool = Field(default=True, nullable=False, index=True)
    last_updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    transactions: list["Transaction"] = Relationship(
        sa_relationship=relationship(
            "Transaction",
            back_populates="account",
            cascade="all, delete-orphan",
            passive_deletes=True,
        ),
    )
    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="accounts"))
