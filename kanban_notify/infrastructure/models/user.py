"""SQLAlchemy model for the user table."""

from sqlalchemy import Boolean, Column, DateTime, String, func

from kanban_notify.infrastructure.database import Base


class UserModel(Base):
    """Database representation of a board member."""

    __tablename__ = "user"

    id = Column(String(64), primary_key=True)
    name = Column(String(120), nullable=True)
    custom_name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
