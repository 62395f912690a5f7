"""Pydantic models describing API payloads."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from notifier.models.push import DispatchResult


class BroadcastRequest(BaseModel):
    """Body of ``POST /send-broadcast-notification``."""

    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    data: dict[str, Any] = {}
    sound: bool = True


class TokenTestRequest(BaseModel):
    """Body of ``POST /test-token``."""

    token: str = Field(min_length=1)
    message: str = "Test notification from server"


class DispatchSummaryResponse(BaseModel):
    success: int
    failed: int
    skipped: int
    total: int
    invalid_tokens: list[str] = Field(default_factory=list, serialization_alias="invalidTokens")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_result(cls, result: DispatchResult, total: int) -> "DispatchSummaryResponse":
        return cls(
            success=result.delivered,
            failed=result.failed,
            skipped=result.skipped,
            total=total,
            invalid_tokens=[r.address for r in result.invalid_recipients],
        )


class GameInvitationRequest(BaseModel):
    target_user_id: str
    inviter_user_id: str
    game_id: str
    game_date: str = Field(description="ISO date, e.g. 2025-01-01")
    game_time: str = Field(description="24h time, e.g. 18:00")
    pitch_name: str
    game_title: str | None = None
    pitch_location: str | None = None


class BulkGameInvitationRequest(BaseModel):
    target_user_ids: list[str] = Field(min_length=1)
    inviter_user_id: str
    game_id: str
    game_date: str
    game_time: str
    pitch_name: str
    game_title: str | None = None
    pitch_location: str | None = None


class InvitationResponse(BaseModel):
    success: bool
    error: str | None = None


class BulkInvitationResponse(BaseModel):
    success: int
    failed: int
    errors: list[str] = []
