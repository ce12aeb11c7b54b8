"""Savings goal entities."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from .user import User


class SavingsGoal(SQLModel, table=True):
    """A target amount the user is saving towards by a date."""

    __tablename__: ClassVar[str] = "savings_goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    description: Optional[str] = Field(default=None, max_length=512)
    target_amount: float = Field(nullable=False)
    current_amount: float = Field(default=0.0, nullable=False)
    target_date: date = Field(nullable=False)
    category: Optional[str] = Field(default=None, max_length=128)
    is_active: bool = Field(default=True, nullable=False, index=True)
    # Derived: current_amount >= target_amount
    is_completed: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user: "User" = Relationship(
        sa_relationship=relationship("User", back_populates="savings_goals")
    )
