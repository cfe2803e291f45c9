"""Typed live-channel events.

Every event carries its wire name in ``EVENT`` and a schema version in ``v``;
clients should ignore fields they do not know so new fields can be added
under the same version.
"""

from __future__ import annotations

from typing import ClassVar, List

from pydantic import Field

from app.domain.chat.schemas import MessageResponse
from app.domain.common.schemas import CamelModel
from app.domain.notifications.schemas import NotificationResponse

EVENT_VERSION = 1


class LiveEvent(CamelModel):
	EVENT: ClassVar[str]

	v: int = Field(default=EVENT_VERSION)


# Server -> client


class PresenceUpdate(LiveEvent):
	EVENT = "presence:update"

	users: List[str]


class MessageNew(LiveEvent):
	EVENT = "message:new"

	conversation_id: str
	message: MessageResponse


class MessageSent(LiveEvent):
	EVENT = "message:sent"

	conversation_id: str
	message: MessageResponse


class MessageDelivered(LiveEvent):
	EVENT = "message:delivered"

	message_id: str


class NotificationNew(LiveEvent):
	EVENT = "notification:new"

	notification: NotificationResponse


class NotificationsUnread(LiveEvent):
	EVENT = "notifications:unread"

	count: int


class MessagesUnread(LiveEvent):
	EVENT = "messages:unread"

	count: int


# Client -> server


class MessageReceived(LiveEvent):
	EVENT = "message:received"

	message_id: str = Field(..., min_length=1)
	sender_id: str = Field(..., min_length=1)
