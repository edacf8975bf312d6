from spinwheel.workers.tasks.token_maintenance import (
    run_expired_token_purge,
    run_spin_reconciliation,
)

__all__ = [
    "run_expired_token_purge",
    "run_spin_reconciliation",
]
