"""Endpoints for the caller's notification preferences."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from kanban_notify.application.use_cases.notifications import (
    get_preferences,
    update_preferences,
)
from kanban_notify.domain.entities import User
from kanban_notify.infrastructure.database import get_db
from kanban_notify.interfaces.api.dependencies import get_current_user
from kanban_notify.interfaces.api.schemas import NotificationPreferenceRead

router = APIRouter(prefix="/users/preferences", tags=["preferences"])


@router.get("", response_model=NotificationPreferenceRead)
def read_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationPreferenceRead:
    """Return the caller's preferences, creating the default row on first read."""

    return NotificationPreferenceRead.from_entity(get_preferences(db, user_id=current_user.id))


@router.put("", response_model=NotificationPreferenceRead)
def write_preferences(
    changes: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationPreferenceRead:
    """Apply a partial update; unknown keys and non-boolean values are ignored."""

    try:
        preference = update_preferences(db, user_id=current_user.id, changes=changes)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return NotificationPreferenceRead.from_entity(preference)
