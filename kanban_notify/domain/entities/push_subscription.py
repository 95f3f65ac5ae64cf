"""Domain entity describing a browser push endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PushSubscription:
    """Web Push endpoint registered by one of the user's devices."""

    id: int | None
    user_id: str
    endpoint: str
    p256dh: str
    auth: str
    created_at: datetime | None = None

    def subscription_info(self) -> dict[str, object]:
        """Return the structure expected by Web Push senders."""

        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


__all__ = ["PushSubscription"]
