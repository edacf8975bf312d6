from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

USER_AGENT_MAX_LENGTH = 512


@dataclass(frozen=True, slots=True)
class PrizeSlotInput:
    name: str
    probability: float
    color: str | None = None


@dataclass(frozen=True, slots=True)
class ClientInfo:
    user_agent: str = ""
    source_address: str | None = None

    def as_payload(self) -> dict[str, object]:
        return {
            "user_agent": self.user_agent[:USER_AGENT_MAX_LENGTH],
            "source_address": self.source_address,
        }


@dataclass(frozen=True, slots=True)
class IssuedToken:
    id: UUID
    code: str
    expires_at: datetime
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ValidatedToken:
    id: UUID
    code: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class WonPrize:
    position: int
    name: str
    color: str


@dataclass(frozen=True, slots=True)
class SpinOutcome:
    result_id: UUID
    token_id: UUID
    prize: WonPrize
    spun_at: datetime
