from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Float, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from spinwheel.db.models.base import Base
from spinwheel.db.types import UtcDateTime


class PrizeSlot(Base):
    __tablename__ = "prize_slots"
    __table_args__ = (
        CheckConstraint("position BETWEEN 1 AND 8", name="ck_prize_slots_position_range"),
        CheckConstraint(
            "probability >= 0 AND probability <= 100",
            name="ck_prize_slots_probability_range",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    position: Mapped[int] = mapped_column(SmallInteger, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    probability: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
