"""Live-channel emits for notifications."""

from __future__ import annotations

from app.domain.realtime import transport
from app.domain.realtime.events import NotificationNew

from .schemas import NotificationResponse


async def emit_notification_new(user_id: str, notification: NotificationResponse) -> int:
	return await transport.push_to_user(user_id, NotificationNew(notification=notification))
