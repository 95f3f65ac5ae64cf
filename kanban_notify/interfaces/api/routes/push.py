"""Endpoints for Web Push subscriptions and direct pushes."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from kanban_notify.application.use_cases.notifications import (
    PushMessage,
    deliver_push,
    subscribe,
    unsubscribe,
)
from kanban_notify.config import get_settings
from kanban_notify.domain.entities import DeliveryStatus, User
from kanban_notify.infrastructure.database import get_db
from kanban_notify.infrastructure.push import PushSender
from kanban_notify.interfaces.api.dependencies import (
    get_current_user,
    get_push_sender,
    get_session_factory,
)
from kanban_notify.interfaces.api.schemas import (
    PushSendRequest,
    PushSendResponse,
    PushSubscriptionRead,
    PushSubscriptionRequest,
    PushUnsubscribeRequest,
    VapidPublicKeyRead,
)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidPublicKeyRead)
def read_vapid_public_key() -> VapidPublicKeyRead:
    """Return the application server key browsers subscribe with."""

    public_key = get_settings().vapid_public_key
    if not public_key:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Web Push is not configured"
        )
    return VapidPublicKeyRead(public_key=public_key)


@router.post("/subscribe", response_model=PushSubscriptionRead, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: PushSubscriptionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PushSubscriptionRead:
    try:
        subscription = subscribe(
            db,
            user_id=current_user.id,
            endpoint=payload.endpoint,
            p256dh=payload.keys.p256dh,
            auth=payload.keys.auth,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PushSubscriptionRead(
        id=subscription.id or 0,
        endpoint=subscription.endpoint,
        created_at=subscription.created_at,
    )


@router.delete("/subscribe", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription(
    payload: PushUnsubscribeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> None:
    try:
        unsubscribe(db, user_id=current_user.id, endpoint=payload.endpoint)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/send", response_model=PushSendResponse, response_model_exclude_none=True)
async def send_push(
    payload: PushSendRequest,
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
    sender: PushSender = Depends(get_push_sender),
) -> PushSendResponse:
    """Push a message to every device of ``userId``, honoring their preferences."""

    outcome = await deliver_push(
        session_factory,
        sender,
        user_id=payload.user_id,
        message=PushMessage(
            title=payload.title,
            body=payload.body,
            url=payload.url or "/",
            tag=payload.tag,
        ),
        category=payload.type,
    )
    if outcome.status is DeliveryStatus.SKIPPED:
        return PushSendResponse(success=True, skipped=True, reason=outcome.reason.value)
    if outcome.status is DeliveryStatus.FAILED:
        return PushSendResponse(success=False, sent=0, error=outcome.error)
    return PushSendResponse(success=True, sent=outcome.sent_count)
