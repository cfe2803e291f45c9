"""Pydantic schemas for the notifications API and live payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.domain.common.schemas import CamelModel

from .models import Notification, NotificationKind


class NotificationResponse(CamelModel):
	id: str
	user_id: str
	type: NotificationKind
	title: str
	body: Optional[str] = None
	link: Optional[str] = None
	meta: Dict[str, Any] = Field(default_factory=dict)
	is_read: bool
	created_at: datetime

	@classmethod
	def from_model(cls, notification: Notification) -> "NotificationResponse":
		return cls(
			id=notification.id,
			user_id=notification.user_id,
			type=notification.type,
			title=notification.title,
			body=notification.body,
			link=notification.link,
			meta=dict(notification.meta),
			is_read=notification.is_read,
			created_at=notification.created_at,
		)


class NotificationListResponse(CamelModel):
	notifications: List[NotificationResponse]
	unread_count: int


class MarkAllReadResponse(CamelModel):
	updated: int


class DispatchNotificationRequest(CamelModel):
	user_id: str
	type: str
	title: str
	body: Optional[str] = None
	link: Optional[str] = None
	meta: Dict[str, Any] = Field(default_factory=dict)
