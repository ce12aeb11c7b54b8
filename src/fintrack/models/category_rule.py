"""User-managed merchant to category rules."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class UserCategoryRule(SQLModel, table=True):
    """Maps a merchant literal or regex onto a category label.

    Lower ``priority`` values are evaluated first; ties fall back to creation
    order.
    """

    __tablename__: ClassVar[str] = "user_category_rule"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", nullable=False, index=True)
    merchant: str = Field(nullable=False, max_length=255)
    category: str = Field(nullable=False, max_length=128)
    is_regex: bool = Field(default=False, nullable=False)
    priority: int = Field(default=1, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user: "User" = Relationship(
        sa_relationship=relationship("User", back_populates="category_rules")
    )
