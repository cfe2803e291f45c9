"""Message delivery protocol.

A message is Sent once persisted and echoed to the sender's sessions, and
Delivered when the receiver's client acknowledges the ``message:new`` push.
Live pushes are at-most-once; the notification row is the durable signal.
Delivered receipts are not persisted: an offline sender never learns of them.

Sending runs in two phases. ``prepare`` validates and resolves the
conversation without writing a message; ``commit`` persists it and publishes
the pushes and notification. Once the message row exists, publishing runs to
completion even if the caller is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Set

from app.domain.common.errors import MessagingError, ValidationError
from app.domain.notifications import service as notifications
from app.domain.notifications.models import NotificationKind
from app.infra.auth import AuthenticatedUser
from app.obs import metrics as obs_metrics
from app.settings import settings

from . import sockets
from .models import Conversation, Message
from .schemas import MessageResponse, ParticipantInfo, SendMessageRequest, SendMessageResponse
from .service import ConversationService, get_service, normalize_body

LOGGER = logging.getLogger(__name__)

MESSAGE_NOTIFICATION_TITLE = "New message"

_PUBLISHING: Set[asyncio.Task] = set()


def conversation_link(conversation_id: str) -> str:
	return f"/messages?conversation={conversation_id}"


@dataclass(slots=True)
class PendingMessage:
	"""A validated send whose conversation is resolved but not yet written to."""

	conversation: Conversation
	body: str
	job_id: Optional[str] = None


class MessageDeliveryService:
	def __init__(
		self,
		conversations: ConversationService | None = None,
		notifier: notifications.NotificationService | None = None,
	) -> None:
		self._conversations = conversations or get_service()
		self._notifier = notifier or notifications.get_service()

	async def send(self, sender: AuthenticatedUser, payload: SendMessageRequest) -> SendMessageResponse:
		pending = await self.prepare(sender, payload)
		return await self.commit(sender, pending)

	async def prepare(self, sender: AuthenticatedUser, payload: SendMessageRequest) -> PendingMessage:
		try:
			# Body is validated before any conversation is created
			body = normalize_body(payload.content)
			if payload.conversation_id:
				conversation = await self._conversations.get_conversation_for(payload.conversation_id, sender.id)
			elif payload.receiver_id:
				conversation = await self._conversations.find_or_create_conversation(
					sender.id, payload.receiver_id, payload.job_id
				)
			else:
				raise ValidationError("receiver_required")
		except MessagingError as exc:
			obs_metrics.inc_chat_send_reject(exc.reason)
			raise
		return PendingMessage(conversation=conversation, body=body, job_id=payload.job_id)

	async def commit(self, sender: AuthenticatedUser, pending: PendingMessage) -> SendMessageResponse:
		try:
			message = await self._conversations.append_message(
				pending.conversation, sender.id, pending.body, pending.job_id
			)
		except MessagingError as exc:
			obs_metrics.inc_chat_send_reject(exc.reason)
			raise
		obs_metrics.inc_chat_send()

		task = asyncio.ensure_future(self._publish(sender, pending.conversation, message))
		_PUBLISHING.add(task)
		task.add_done_callback(_PUBLISHING.discard)
		return await asyncio.shield(task)

	async def _publish(self, sender: AuthenticatedUser, conversation: Conversation, message: Message) -> SendMessageResponse:
		participants = await self._conversations.directory.users((message.sender_id, message.receiver_id))
		known = participants.get(sender.id)
		if known is None or known.name is None:
			participants[sender.id] = ParticipantInfo(
				id=sender.id,
				name=sender.name,
				email=sender.email,
				role=sender.role,
			)
		response = MessageResponse.from_model(message, participants)

		await sockets.emit_message_new(message.receiver_id, conversation.id, response)
		await sockets.emit_message_sent(message.sender_id, conversation.id, response)
		await self._notifier.notify(
			message.receiver_id,
			NotificationKind.MESSAGE.value,
			MESSAGE_NOTIFICATION_TITLE,
			body=message.body[: settings.notification_preview_length],
			link=conversation_link(conversation.id),
			meta={"conversationId": conversation.id, "messageId": message.id},
		)
		return SendMessageResponse(message=response, conversation_id=conversation.id)

	async def acknowledge_receipt(self, receiver: AuthenticatedUser, message_id: str, sender_id: str) -> bool:
		"""Relay ``message:delivered`` to the sender once the receiver's client has the message."""
		message = await self._conversations.get_message(message_id)
		reason: Optional[str] = None
		if message is None:
			reason = "unknown_message"
		elif message.receiver_id != receiver.id:
			reason = "not_receiver"
		elif message.sender_id != sender_id:
			reason = "sender_mismatch"
		if reason is not None:
			obs_metrics.inc_chat_delivered_dropped(reason)
			LOGGER.info("delivery receipt dropped", extra={"reason": reason, "message_id": message_id})
			return False
		await sockets.emit_message_delivered(message.sender_id, message.id)
		obs_metrics.inc_chat_delivered()
		return True


_SERVICE = MessageDeliveryService()


async def send_message(sender: AuthenticatedUser, payload: SendMessageRequest) -> SendMessageResponse:
	return await _SERVICE.send(sender, payload)


async def prepare_message(sender: AuthenticatedUser, payload: SendMessageRequest) -> PendingMessage:
	return await _SERVICE.prepare(sender, payload)


async def commit_message(sender: AuthenticatedUser, pending: PendingMessage) -> SendMessageResponse:
	return await _SERVICE.commit(sender, pending)


async def acknowledge_receipt(receiver: AuthenticatedUser, message_id: str, sender_id: str) -> bool:
	return await _SERVICE.acknowledge_receipt(receiver, message_id, sender_id)
