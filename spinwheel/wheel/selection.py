from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from spinwheel.wheel.constants import PRIZE_PROBABILITY_TOLERANCE, PRIZE_PROBABILITY_TOTAL

_FLOAT_SLACK = 1e-9
_system_random = random.SystemRandom()


class WeightedPrize(Protocol):
    position: int
    probability: float


PrizeT = TypeVar("PrizeT", bound=WeightedPrize)


def probability_total(probabilities: Iterable[float]) -> float:
    return math.fsum(probabilities)


def is_probability_total_valid(total: float) -> bool:
    return math.isclose(
        total,
        PRIZE_PROBABILITY_TOTAL,
        rel_tol=0.0,
        abs_tol=PRIZE_PROBABILITY_TOLERANCE + _FLOAT_SLACK,
    )


def draw_value(rng: random.Random | None = None) -> float:
    """Uniform draw in [0, 100)."""
    return (rng or _system_random).random() * PRIZE_PROBABILITY_TOTAL


def select_prize(prizes: Sequence[PrizeT], draw: float) -> PrizeT:
    """Map a draw onto the cumulative probability partition.

    Prizes are walked in the given order; each owns the half-open range
    ``[cumulative_before, cumulative_after)``. When rounding leaves the draw
    past the last boundary, the last prize wins.
    """
    if not prizes:
        raise ValueError("prize table is empty")

    cumulative = 0.0
    for prize in prizes:
        cumulative += prize.probability
        if draw < cumulative:
            return prize
    return prizes[-1]
