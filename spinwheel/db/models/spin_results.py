from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, SmallInteger, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from spinwheel.db.models.base import Base
from spinwheel.db.types import UtcDateTime


class SpinResult(Base):
    __tablename__ = "spin_results"
    __table_args__ = (
        Index("idx_spin_results_created_at", "created_at"),
        Index("idx_spin_results_prize_position", "prize_position"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    token_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tokens.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    prize_slot_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("prize_slots.id"), nullable=False)
    prize_position: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    prize_name: Mapped[str] = mapped_column(String(128), nullable=False)
    prize_color: Mapped[str] = mapped_column(String(16), nullable=False)
    client_info: Mapped[dict[str, object]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
