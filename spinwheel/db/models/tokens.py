from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BOOLEAN, Index, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from spinwheel.db.models.base import Base
from spinwheel.db.types import UtcDateTime


class Token(Base):
    __tablename__ = "tokens"
    __table_args__ = (
        Index("idx_tokens_expires_at", "expires_at"),
        Index("idx_tokens_used_expires", "is_used", "expires_at"),
        Index("idx_tokens_created_at", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    is_used: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=false())
    used_at: Mapped[datetime | None] = mapped_column(UtcDateTime, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    # Points at spin_results.id; no FK so the two tables do not form a cycle.
    result_id: Mapped[UUID | None] = mapped_column(Uuid, unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
