from spinwheel.db.repo.prizes_repo import PrizesRepo
from spinwheel.db.repo.spin_attempts_repo import SpinAttemptsRepo
from spinwheel.db.repo.spin_results_repo import SpinResultsRepo
from spinwheel.db.repo.tokens_repo import TokensRepo

__all__ = [
    "PrizesRepo",
    "SpinAttemptsRepo",
    "SpinResultsRepo",
    "TokensRepo",
]
