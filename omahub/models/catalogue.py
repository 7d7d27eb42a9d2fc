"""Catalogue (collection) table model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from omahub.models.base import Base


class Catalogue(Base):
    """Collection published by a brand."""

    __tablename__ = "catalogues"
    __table_args__ = (Index("idx_catalogues_brand", "brand_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("brands.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
