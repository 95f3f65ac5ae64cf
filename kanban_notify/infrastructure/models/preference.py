"""SQLAlchemy model for notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import expression

from kanban_notify.infrastructure.database import Base
from kanban_notify.utils import now_in_app_naive_datetime


def _flag_column() -> Column:
    return Column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
    )


class NotificationPreferenceModel(Base):
    """Email and push toggles for a single user."""

    __tablename__ = "notification_preference"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("user.id"), nullable=False, unique=True, index=True)
    email_task_assigned = _flag_column()
    email_task_unassigned = _flag_column()
    email_status_changed = _flag_column()
    email_priority_changed = _flag_column()
    email_new_comment = _flag_column()
    email_due_date_changed = _flag_column()
    email_collaborator_added = _flag_column()
    email_collaborator_removed = _flag_column()
    email_mention = _flag_column()
    email_new_submission = _flag_column()
    push_enabled = _flag_column()
    push_chat_enabled = _flag_column()
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_in_app_naive_datetime)


__all__ = ["NotificationPreferenceModel"]
