from spinwheel.db.models.prize_slots import PrizeSlot
from spinwheel.db.models.spin_attempts import SpinAttempt
from spinwheel.db.models.spin_results import SpinResult
from spinwheel.db.models.tokens import Token

__all__ = [
    "PrizeSlot",
    "SpinAttempt",
    "SpinResult",
    "Token",
]
