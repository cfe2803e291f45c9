"""Live-channel emits for the message delivery protocol."""

from __future__ import annotations

from app.domain.realtime import transport
from app.domain.realtime.events import MessageDelivered, MessageNew, MessageSent

from .schemas import MessageResponse


async def emit_message_new(receiver_id: str, conversation_id: str, message: MessageResponse) -> int:
	return await transport.push_to_user(receiver_id, MessageNew(conversation_id=conversation_id, message=message))


async def emit_message_sent(sender_id: str, conversation_id: str, message: MessageResponse) -> int:
	return await transport.push_to_user(sender_id, MessageSent(conversation_id=conversation_id, message=message))


async def emit_message_delivered(sender_id: str, message_id: str) -> int:
	return await transport.push_to_user(sender_id, MessageDelivered(message_id=message_id))
