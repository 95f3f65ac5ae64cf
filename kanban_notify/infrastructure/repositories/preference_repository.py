"""Persistence layer for notification preferences."""

from __future__ import annotations

from typing import Mapping

from sqlalchemy.orm import Session

from kanban_notify.domain.entities import PREFERENCE_FLAGS, NotificationPreference
from kanban_notify.infrastructure.models import NotificationPreferenceModel
from kanban_notify.utils import ensure_app_timezone, now_in_app_naive_datetime


class NotificationPreferenceRepository:
    """Read and upsert the single preference row owned by each user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreference | None:
        model = self._get_model(user_id)
        return self._to_entity(model) if model else None

    def get_or_create(self, user_id: str) -> NotificationPreference:
        """Return the stored preferences, creating an all-enabled row if absent."""

        model = self._get_model(user_id)
        if model is None:
            model = NotificationPreferenceModel(user_id=user_id)
            for flag in PREFERENCE_FLAGS:
                setattr(model, flag, True)
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def upsert(self, user_id: str, flags: Mapping[str, bool]) -> NotificationPreference:
        """Apply ``flags`` over the user's row; unknown keys are ignored."""

        model = self._get_model(user_id)
        if model is None:
            model = NotificationPreferenceModel(user_id=user_id)
            for flag in PREFERENCE_FLAGS:
                setattr(model, flag, True)
        for flag, value in flags.items():
            if flag in PREFERENCE_FLAGS:
                setattr(model, flag, bool(value))
        model.updated_at = now_in_app_naive_datetime()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def _get_model(self, user_id: str) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .one_or_none()
        )

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            user_id=model.user_id,
            flags={flag: bool(getattr(model, flag)) for flag in PREFERENCE_FLAGS},
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationPreferenceRepository"]
