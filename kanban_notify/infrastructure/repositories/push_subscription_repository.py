"""Persistence layer for Web Push subscriptions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.orm import Session

from kanban_notify.domain.entities import PushSubscription
from kanban_notify.infrastructure.models import PushSubscriptionModel
from kanban_notify.utils import ensure_app_timezone


class PushSubscriptionRepository:
    """Registry of push endpoints, unique per (user, endpoint)."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_user(self, user_id: str) -> Sequence[PushSubscription]:
        query = (
            self.session.query(PushSubscriptionModel)
            .filter(PushSubscriptionModel.user_id == user_id)
            .order_by(PushSubscriptionModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def upsert(
        self, user_id: str, endpoint: str, *, p256dh: str, auth: str
    ) -> PushSubscription:
        model = (
            self.session.query(PushSubscriptionModel)
            .filter(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.endpoint == endpoint,
            )
            .one_or_none()
        )
        if model is None:
            model = PushSubscriptionModel(user_id=user_id, endpoint=endpoint)
        model.p256dh = p256dh
        model.auth = auth
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete_by_endpoint(self, user_id: str, endpoint: str) -> int:
        deleted = (
            self.session.query(PushSubscriptionModel)
            .filter(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.endpoint == endpoint,
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def delete_many(self, subscription_ids: Iterable[int]) -> int:
        """Delete every id in one statement; ids already gone are ignored."""

        ids = sorted({subscription_id for subscription_id in subscription_ids if subscription_id is not None})
        if not ids:
            return 0
        deleted = (
            self.session.query(PushSubscriptionModel)
            .filter(PushSubscriptionModel.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _to_entity(model: PushSubscriptionModel) -> PushSubscription:
        return PushSubscription(
            id=model.id,
            user_id=model.user_id,
            endpoint=model.endpoint,
            p256dh=model.p256dh,
            auth=model.auth,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["PushSubscriptionRepository"]
