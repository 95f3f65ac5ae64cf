"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from kanban_notify.application.use_cases.notifications import NotificationFanOut
from kanban_notify.config import get_settings
from kanban_notify.infrastructure.database import SessionLocal, engine, initialize_database
from kanban_notify.infrastructure.email import EmailSender, SendGridEmailSender
from kanban_notify.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
    RealtimeBroker,
)
from kanban_notify.infrastructure.push import PushSender, WebPushSender
from kanban_notify.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema on startup; let pending fan-outs and pushes finish on shutdown."""

    initialize_database()
    yield
    pending = app.state.fan_out.pending
    if pending:
        logger.info("Waiting for %s notification fan-outs to settle", pending)
    await app.state.fan_out.drain()
    await app.state.notification_publisher.drain()
    engine.dispose()


def create_app(
    *,
    email_sender: EmailSender | None = None,
    push_sender: PushSender | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="Kanban notifications", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    manager = NotificationConnectionManager()
    app.state.notification_manager = manager
    app.state.notification_publisher = NotificationPublisher(manager)
    app.state.session_factory = session_factory or SessionLocal
    app.state.realtime_broker = RealtimeBroker()
    app.state.push_sender = push_sender or WebPushSender()
    app.state.fan_out = NotificationFanOut(
        app.state.session_factory,
        email_sender=email_sender or SendGridEmailSender(),
        push_sender=app.state.push_sender,
        publisher=app.state.notification_publisher,
        app_url=settings.app_url,
    )

    register_routes(app)
    return app
