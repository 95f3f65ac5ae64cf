"""Endpoints and websocket handler for notifications."""

from __future__ import annotations

import asyncio
import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from kanban_notify.application.use_cases.notifications import (
    NotificationFanOut,
    build_event,
    notify_comment_added,
    notify_task_changed,
)
from kanban_notify.domain.entities import FanOutReport, Notification, User
from kanban_notify.infrastructure.database import SessionLocal, get_db
from kanban_notify.infrastructure.notifications import serialize_notification
from kanban_notify.infrastructure.repositories import NotificationRepository, UserRepository
from kanban_notify.interfaces.api.dependencies import (
    get_current_user,
    get_fan_out,
    resolve_current_user,
)
from kanban_notify.interfaces.api.schemas import (
    CommentEventRequest,
    EventDispatchResponse,
    FanOutReportRead,
    NotificationEmailRequest,
    NotificationMarkReadRequest,
    NotificationMarkReadResponse,
    NotificationRead,
    TaskChangeRequest,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        event_type=notification.event_type,
        title=notification.title,
        message=notification.message,
        payload=notification.payload or {},
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


async def _dispatch_response(
    handles: list[asyncio.Task[FanOutReport]], *, wait: bool
) -> EventDispatchResponse:
    if not wait:
        return EventDispatchResponse(scheduled=len(handles))
    reports = await asyncio.gather(*handles)
    return EventDispatchResponse(
        scheduled=len(handles),
        reports=[FanOutReportRead.from_report(report) for report in reports],
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    unread: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    """Return the most recent notifications for the authenticated user."""

    repository = NotificationRepository(db)
    if unread:
        notifications = repository.list_unread_for_user(current_user.id, limit=limit)
    else:
        notifications = repository.list_for_user(current_user.id, limit=limit)
    return [_notification_to_schema(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UnreadCountRead:
    return UnreadCountRead(count=NotificationRepository(db).count_unread(current_user.id))


@router.post("/read", response_model=NotificationMarkReadResponse)
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationMarkReadResponse:
    """Mark the given notifications of the authenticated user as read."""

    updated = NotificationRepository(db).mark_as_read(
        payload.unique_ids(), user_id=current_user.id
    )
    return NotificationMarkReadResponse(updated=updated)


@router.post("/email", response_model=FanOutReportRead)
async def send_notification_email(
    payload: NotificationEmailRequest,
    current_user: User = Depends(get_current_user),
    fan_out: NotificationFanOut = Depends(get_fan_out),
) -> FanOutReportRead:
    """Run the email and push channels of one event for one recipient."""

    event = build_event(
        payload.type,
        subject_id=payload.task_id,
        subject_title=payload.task_title,
        board_id=payload.board_id,
        board_name=payload.board_name,
        actor_id=current_user.id,
        metadata=payload.metadata,
    )
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid notification payload"
        )
    report = await fan_out.deliver_external(event, payload.recipient_id)
    return FanOutReportRead.from_report(report)


@router.post(
    "/events/task-change",
    response_model=EventDispatchResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def task_changed(
    payload: TaskChangeRequest,
    wait: bool = Query(False),
    current_user: User = Depends(get_current_user),
    fan_out: NotificationFanOut = Depends(get_fan_out),
) -> EventDispatchResponse:
    """Classify a task mutation and fan out every resulting event."""

    handles = notify_task_changed(
        fan_out,
        before=payload.before.to_entity() if payload.before else None,
        after=payload.after.to_entity(),
        actor_id=current_user.id,
        actor_name=payload.actor_name or current_user.display_name,
    )
    return await _dispatch_response(handles, wait=wait)


@router.post(
    "/events/comment",
    response_model=EventDispatchResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def comment_added(
    payload: CommentEventRequest,
    wait: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    fan_out: NotificationFanOut = Depends(get_fan_out),
) -> EventDispatchResponse:
    """Notify stakeholders of a new comment and ping the users it mentions."""

    handles = notify_comment_added(
        fan_out,
        task=payload.task.to_entity(),
        actor_id=current_user.id,
        commenter_name=payload.commenter_name,
        text=payload.text,
        users=UserRepository(db).list_active(),
    )
    return await _dispatch_response(handles, wait=wait)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        pending_notifications = NotificationRepository(session).list_unread_for_user(
            user.id
        )
    except HTTPException:
        await websocket.close(code=1008)
        return
    except Exception:
        logger.exception("Could not open notification socket")
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    manager = websocket.app.state.notification_manager
    await manager.connect(user.id, websocket)
    try:
        if pending_notifications:
            await websocket.send_json(
                {
                    "type": "init",
                    "data": [serialize_notification(n) for n in pending_notifications],
                }
            )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = SessionLocal()
                    try:
                        NotificationRepository(ack_session).mark_as_read(ids, user_id=user.id)
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        manager.disconnect(user.id, websocket)
    except Exception:
        manager.disconnect(user.id, websocket)
        raise
