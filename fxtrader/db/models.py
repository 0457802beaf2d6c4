"""
SQLAlchemy ORM models for Fx AI Trader.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from fxtrader.db.database import Base


class TimestampMixin:
    """Mixin for created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class ConfigDocumentModel(Base, TimestampMixin):
    """JSON document stored under a path, e.g. ``/ai_config``.

    Keeps the realtime-database layout the admin tooling was built
    against: one document per path, arbitrary keys inside.
    """

    __tablename__ = "config_documents"

    path: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
