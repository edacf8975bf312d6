from __future__ import annotations

import os
import tempfile
from pathlib import Path

# Settings are read once at import time; point the app at a throwaway SQLite file
# and in-memory Celery transports before any spinwheel module is imported.
_TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="spinwheel-tests-")) / "spinwheel.sqlite3"

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:6379/15")
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["INTERNAL_API_TOKEN"] = "test-internal-token"
os.environ["INTERNAL_API_ALLOWLIST"] = "127.0.0.1/32,::1/128"
os.environ["SEED_PRIZES_ON_STARTUP"] = "false"
os.environ["APP_ENV"] = "test"
