"""Persistence layer for user data."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from kanban_notify.domain.entities import User
from kanban_notify.infrastructure.models import UserModel


class UserRepository:
    """Read access to board members, plus creation for seeding."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active(self) -> Sequence[User]:
        query = (
            self.session.query(UserModel)
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def get(self, user_id: str) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            name=user.name,
            custom_name=user.custom_name,
            email=user.email,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            custom_name=model.custom_name,
            is_active=bool(model.is_active),
        )


__all__ = ["UserRepository"]
