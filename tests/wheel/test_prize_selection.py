from __future__ import annotations

import random
from dataclasses import dataclass

import pytest

from spinwheel.wheel.selection import (
    draw_value,
    is_probability_total_valid,
    probability_total,
    select_prize,
)


@dataclass(frozen=True)
class _Slot:
    position: int
    probability: float


EVEN_TABLE = [_Slot(position=position, probability=12.5) for position in range(1, 9)]


@pytest.mark.parametrize(
    ("draw", "expected_position"),
    [
        (0.0, 1),
        (12.499, 1),
        (12.5, 2),
        (50.0, 5),
        (87.5, 8),
        (99.999, 8),
    ],
)
def test_select_prize_uses_half_open_cumulative_ranges(draw: float, expected_position: int) -> None:
    assert select_prize(EVEN_TABLE, draw).position == expected_position


def test_select_prize_never_picks_zero_probability_slot() -> None:
    table = [
        _Slot(position=1, probability=0.0),
        _Slot(position=2, probability=50.0),
        _Slot(position=3, probability=0.0),
        _Slot(position=4, probability=50.0),
    ]

    assert select_prize(table, 0.0).position == 2
    assert select_prize(table, 50.0).position == 4


def test_select_prize_falls_back_to_last_slot_when_rounding_leaves_a_gap() -> None:
    table = [_Slot(position=1, probability=49.995), _Slot(position=2, probability=49.995)]

    assert select_prize(table, 99.995).position == 2


def test_select_prize_rejects_empty_table() -> None:
    with pytest.raises(ValueError):
        select_prize([], 10.0)


def test_draw_value_is_scaled_to_percent_range() -> None:
    rng = random.Random(2026)
    draws = [draw_value(rng) for _ in range(200)]

    assert all(0.0 <= draw < 100.0 for draw in draws)
    assert max(draws) > 50.0


@pytest.mark.parametrize(
    ("total", "is_valid"),
    [
        (100.0, True),
        (99.995, True),
        (100.01, True),
        (99.99, True),
        (99.9, False),
        (100.2, False),
        (0.0, False),
    ],
)
def test_is_probability_total_valid_allows_small_rounding(total: float, is_valid: bool) -> None:
    assert is_probability_total_valid(total) is is_valid


def test_probability_total_sums_without_drift() -> None:
    assert probability_total([0.1] * 1000) == 100.0
