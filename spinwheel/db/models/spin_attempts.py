from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, CheckConstraint, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from spinwheel.db.models.base import Base
from spinwheel.db.types import UtcDateTime


class SpinAttempt(Base):
    __tablename__ = "spin_attempts"
    __table_args__ = (
        CheckConstraint(
            "result IN ('ACCEPTED','INVALID','ALREADY_USED','EXPIRED','RATE_LIMITED','MISCONFIGURED')",
            name="ck_spin_attempts_result",
        ),
        Index("idx_spin_attempts_source_time", "source_address", "attempted_at"),
        Index("idx_spin_attempts_code_time", "normalized_code", "attempted_at"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer(), "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    source_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    normalized_code: Mapped[str] = mapped_column(String(64), nullable=False)
    result: Mapped[str] = mapped_column(String(24), nullable=False)
    attempted_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
