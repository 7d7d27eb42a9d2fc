"""User favourite table model."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from omahub.models.base import Base


class Favourite(Base):
    """Link from one user to one favoritable brand, catalogue or product."""

    __tablename__ = "favourites"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "item_id", "item_type", name="uq_favourites_user_item"
        ),
        CheckConstraint(
            "item_type IN ('brand', 'catalogue', 'product')",
            name="ck_favourites_item_type",
        ),
        Index("idx_favourites_user", "user_id"),
        Index("idx_favourites_created", "created_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
