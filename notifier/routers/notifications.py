"""Push notification endpoints used by the admin script and the app backend."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from notifier.config import get_settings
from notifier.dependencies import get_broadcast_service, get_dispatcher, get_invitation_service
from notifier.models.schemas import (
    BroadcastRequest,
    BulkGameInvitationRequest,
    BulkInvitationResponse,
    DispatchSummaryResponse,
    GameInvitationRequest,
    InvitationResponse,
    TokenTestRequest,
)
from notifier.services.broadcast import BroadcastService, send_test_notification
from notifier.services.dispatcher import NotificationDispatcher
from notifier.services.game_invitations import BulkGameInvitation, GameInvitation, GameInvitationService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.post("/send-broadcast-notification", response_model=DispatchSummaryResponse)
def send_broadcast(
    payload: BroadcastRequest,
    service: BroadcastService = Depends(get_broadcast_service),
) -> DispatchSummaryResponse:
    """Send a notification to every user with a registered device."""
    result = service.broadcast_to_all(
        payload.title,
        payload.message,
        payload.data,
        with_sound=payload.sound,
    )
    return DispatchSummaryResponse.from_result(result, total=result.submitted + result.skipped)


@router.post("/test-token", response_model=DispatchSummaryResponse)
def test_token(
    payload: TokenTestRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> DispatchSummaryResponse:
    """Send a single test notification to ``payload.token``."""
    if not dispatcher.is_valid_address(payload.token):
        raise HTTPException(status_code=400, detail="Token is not a valid Expo push token")

    result = send_test_notification(
        dispatcher,
        payload.token,
        payload.message,
        sound=get_settings().notification_sound,
    )
    return DispatchSummaryResponse.from_result(result, total=1)


@router.post("/send-game-invitation", response_model=InvitationResponse)
def send_game_invitation(
    payload: GameInvitationRequest,
    service: GameInvitationService = Depends(get_invitation_service),
) -> InvitationResponse:
    result = service.send_invitation(GameInvitation(**payload.model_dump()))
    return InvitationResponse(success=result.success, error=result.error)


@router.post("/send-bulk-game-invitations", response_model=BulkInvitationResponse)
def send_bulk_game_invitations(
    payload: BulkGameInvitationRequest,
    service: GameInvitationService = Depends(get_invitation_service),
) -> BulkInvitationResponse:
    result = service.send_bulk_invitations(BulkGameInvitation(**payload.model_dump()))
    return BulkInvitationResponse(success=result.success, failed=result.failed, errors=result.errors)
