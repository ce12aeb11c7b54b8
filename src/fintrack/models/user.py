"""User model owning every other FinTrack entity."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .account import Account
    from .budget import Budget
    from .category_rule import UserCategoryRule
    from .savings_goal import SavingsGoal
    from .transaction import Transaction


class SyncStatus(str, Enum):
    """Bank-link synchronisation state, written by the bank-sync job."""

    NEVER_SYNCED = "NEVER_SYNCED"
    SYNCING = "SYNCING"
    SYNCED = "SYNCED"
    ERROR = "ERROR"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"


def _owned(target: str):
    # Children are removed by the database's ON DELETE CASCADE.
    return relationship(
        target,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class User(SQLModel, table=True):
    """Application user with bank-link identifiers."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(nullable=False, unique=True, index=True, max_length=255)
    full_name: str = Field(nullable=False, max_length=255)
    password_hash: str = Field(nullable=False, max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    plaid_access_token: Optional[str] = Field(default=None, max_length=255)
    plaid_item_id: Optional[str] = Field(default=None, unique=True, max_length=128)
    plaid_institution_id: Optional[str] = Field(default=None, max_length=128)
    plaid_institution_name: Optional[str] = Field(default=None, max_length=255)
    last_sync_at: Optional[datetime] = Field(default=None)
    sync_status: SyncStatus = Field(default=SyncStatus.NEVER_SYNCED, nullable=False)

    accounts: list["Account"] = Relationship(sa_relationship=_owned("Account"))
    transactions: list["Transaction"] = Relationship(sa_relationship=_owned("Transaction"))
    budgets: list["Budget"] = Relationship(sa_relationship=_owned("Budget"))
    savings_goals: list["SavingsGoal"] = Relationship(sa_relationship=_owned("SavingsGoal"))
    category_rules: list["UserCategoryRule"] = Relationship(
        sa_relationship=_owned("UserCategoryRule")
    )
