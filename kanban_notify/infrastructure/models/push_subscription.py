"""SQLAlchemy model for Web Push subscriptions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from kanban_notify.infrastructure.database import Base
from kanban_notify.utils import now_in_app_naive_datetime


class PushSubscriptionModel(Base):
    """One browser endpoint able to receive push messages for a user."""

    __tablename__ = "push_subscription"
    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_push_subscription_user_endpoint"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("user.id"), nullable=False, index=True)
    endpoint = Column(String(1024), nullable=False)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)


__all__ = ["PushSubscriptionModel"]
