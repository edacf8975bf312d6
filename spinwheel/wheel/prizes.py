from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spinwheel.db.models.prize_slots import PrizeSlot
from spinwheel.db.repo.prizes_repo import PrizesRepo
from spinwheel.wheel.constants import DEFAULT_PRIZE_COLOR, DEFAULT_PRIZE_TABLE, PRIZE_SLOT_COUNT
from spinwheel.wheel.errors import PrizeTableConfigurationError, WheelValidationError
from spinwheel.wheel.selection import is_probability_total_valid, probability_total
from spinwheel.wheel.types import PrizeSlotInput

logger = structlog.get_logger(__name__)


def normalize_prize_slots(slots: Sequence[PrizeSlotInput]) -> list[PrizeSlotInput]:
    if len(slots) != PRIZE_SLOT_COUNT:
        raise WheelValidationError(f"Must provide exactly {PRIZE_SLOT_COUNT} prizes.")

    normalized: list[PrizeSlotInput] = []
    for index, slot in enumerate(slots, start=1):
        name = (slot.name or "").strip()
        if not name:
            raise WheelValidationError(f"Prize {index} name is required.")

        probability = slot.probability
        if (
            isinstance(probability, bool)
            or not isinstance(probability, (int, float))
            or not math.isfinite(probability)
            or not 0 <= probability <= 100
        ):
            raise WheelValidationError(f"Prize {index} probability must be between 0 and 100.")

        color = (slot.color or "").strip() or DEFAULT_PRIZE_COLOR
        normalized.append(PrizeSlotInput(name=name, probability=float(probability), color=color))

    total = probability_total(slot.probability for slot in normalized)
    if not is_probability_total_valid(total):
        raise WheelValidationError(
            f"Total probability must equal 100%. Current total: {round(total, 4)}%"
        )
    return normalized


def assert_prize_table_spinnable(prizes: Sequence[PrizeSlot]) -> None:
    if len(prizes) != PRIZE_SLOT_COUNT:
        raise PrizeTableConfigurationError(
            f"Prize table has {len(prizes)} slot(s), expected {PRIZE_SLOT_COUNT}."
        )
    total = probability_total(prize.probability for prize in prizes)
    if not is_probability_total_valid(total):
        raise PrizeTableConfigurationError(
            f"Prize probabilities sum to {round(total, 4)}%, expected 100%."
        )


class PrizeTableService:
    @staticmethod
    async def list_prizes(session: AsyncSession) -> list[PrizeSlot]:
        return await PrizesRepo.list_ordered(session)

    @staticmethod
    async def replace_all(
        session: AsyncSession,
        *,
        slots: Sequence[PrizeSlotInput],
        updated_by: str,
        now_utc: datetime | None = None,
    ) -> list[PrizeSlot]:
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized = normalize_prize_slots(slots)

        existing = {
            prize.position: prize for prize in await PrizesRepo.list_ordered_for_update(session)
        }
        updated: list[PrizeSlot] = []
        created: list[PrizeSlot] = []
        for position, slot in enumerate(normalized, start=1):
            prize = existing.get(position)
            if prize is None:
                prize = PrizeSlot(
                    id=uuid4(),
                    position=position,
                    name=slot.name,
                    probability=slot.probability,
                    color=slot.color or DEFAULT_PRIZE_COLOR,
                    created_at=now_utc,
                    updated_at=now_utc,
                )
                created.append(prize)
            else:
                prize.name = slot.name
                prize.probability = slot.probability
                prize.color = slot.color or DEFAULT_PRIZE_COLOR
                prize.updated_at = now_utc
            updated.append(prize)

        if created:
            await PrizesRepo.create_many(session, slots=created)
        await session.flush()

        logger.info(
            "prize_table_replaced",
            updated_by=updated_by,
            created_slots=len(created),
            probabilities=[prize.probability for prize in updated],
        )
        return updated

    @staticmethod
    async def ensure_initialized(
        session: AsyncSession,
        *,
        now_utc: datetime | None = None,
    ) -> bool:
        if await PrizesRepo.count(session) > 0:
            return False

        now_utc = now_utc or datetime.now(timezone.utc)
        try:
            async with session.begin_nested():
                await PrizesRepo.create_many(
                    session,
                    slots=[
                        PrizeSlot(
                            id=uuid4(),
                            position=position,
                            name=name,
                            probability=probability,
                            color=color,
                            created_at=now_utc,
                            updated_at=now_utc,
                        )
                        for position, name, probability, color in DEFAULT_PRIZE_TABLE
                    ],
                )
        except IntegrityError:
            # Another instance seeded the table between the count and the insert.
            logger.info("prize_table_seed_skipped", reason="concurrent_seed")
            return False
        logger.info("prize_table_seeded", slots=len(DEFAULT_PRIZE_TABLE))
        return True
