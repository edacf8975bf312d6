from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PrizeResponse(BaseModel):
    position: int = Field(ge=1, le=8)
    name: str
    probability: float = Field(ge=0.0, le=100.0)
    color: str


class PrizeListResponse(BaseModel):
    prizes: list[PrizeResponse]


class PrizeSlotPayload(BaseModel):
    name: str = Field(max_length=128)
    probability: float
    color: str | None = Field(default=None, max_length=16)


class PrizeTableUpdateRequest(BaseModel):
    prizes: list[PrizeSlotPayload]


class WonPrizeResponse(BaseModel):
    position: int
    name: str
    color: str


class SpinRequest(BaseModel):
    token_code: str = Field(min_length=1, max_length=64)


class SpinResponse(BaseModel):
    prize: WonPrizeResponse
    result_id: UUID
    spun_at: datetime


class TokenValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)


class TokenValidateResponse(BaseModel):
    token_id: UUID
    code: str
    expires_at: datetime


class TokenIssueRequest(BaseModel):
    quantity: int = 1


class IssuedTokenResponse(BaseModel):
    id: UUID
    code: str
    expires_at: datetime
    created_at: datetime


class TokenIssueResponse(BaseModel):
    requested: int = Field(ge=1)
    created: int = Field(ge=0)
    tokens: list[IssuedTokenResponse]


class PaginationResponse(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)


class TokenListItem(BaseModel):
    id: UUID
    code: str
    status: str
    is_used: bool
    used_at: datetime | None = None
    expires_at: datetime
    created_at: datetime
    created_by: str
    has_result: bool


class TokenListResponse(BaseModel):
    tokens: list[TokenListItem]
    pagination: PaginationResponse


class TokenStatsResponse(BaseModel):
    total: int = Field(ge=0)
    used: int = Field(ge=0)
    expired: int = Field(ge=0)
    active: int = Field(ge=0)


class ExpiredTokensPurgeResponse(BaseModel):
    deleted: int = Field(ge=0)


class SpinResultItem(BaseModel):
    id: UUID
    token_code: str
    token_created_by: str
    prize: WonPrizeResponse
    spun_at: datetime
    client_info: dict[str, object]


class SpinResultListResponse(BaseModel):
    results: list[SpinResultItem]
    pagination: PaginationResponse


class PrizeDistributionItem(BaseModel):
    position: int
    prize_name: str
    count: int = Field(ge=0)
    expected_probability: float = Field(ge=0.0, le=100.0)
    actual_percentage: float = Field(ge=0.0, le=100.0)


class SpinStatsResponse(BaseModel):
    generated_at: datetime
    total_spins: int = Field(ge=0)
    prize_distribution: list[PrizeDistributionItem]
    attempts_window_hours: int = Field(ge=1)
    attempts_by_result: dict[str, int]
