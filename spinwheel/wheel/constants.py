from __future__ import annotations

PRIZE_SLOT_COUNT = 8
PRIZE_PROBABILITY_TOTAL = 100.0
PRIZE_PROBABILITY_TOLERANCE = 0.01
DEFAULT_PRIZE_COLOR = "#FFD700"
DEFAULT_PRIZE_TABLE: tuple[tuple[int, str, float, str], ...] = tuple(
    (position, f"Prize {position}", 12.5, "#FF6B6B" if position % 2 else "#FFD700")
    for position in range(1, PRIZE_SLOT_COUNT + 1)
)

TOKEN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TOKEN_CODE_MAX_ATTEMPTS = 10
TOKEN_ISSUE_MIN_QUANTITY = 1
TOKEN_ISSUE_MAX_QUANTITY = 100

ACCEPTED_ATTEMPT_RESULT = "ACCEPTED"
