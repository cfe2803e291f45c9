"""Conversation store operations: lookup, listing, reading and appending."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.domain.common.errors import Forbidden, NotFound, ValidationError
from app.obs import metrics as obs_metrics
from app.settings import settings

from .directory import ParticipantDirectory
from .models import Conversation, ConversationKey, Message
from .repo import ChatRepository
from .schemas import ConversationSummary, MessageResponse

LOGGER = logging.getLogger(__name__)


def normalize_body(body: object) -> str:
	"""Trim and bound a message body; raises ValidationError when out of range."""
	if not isinstance(body, str):
		raise ValidationError("body_required")
	trimmed = body.strip()
	if not trimmed:
		raise ValidationError("body_empty")
	if len(trimmed) > settings.message_max_length:
		raise ValidationError("body_too_long")
	return trimmed


class ConversationService:
	def __init__(
		self,
		repository: ChatRepository | None = None,
		directory: ParticipantDirectory | None = None,
	) -> None:
		self._repo = repository or ChatRepository()
		self._directory = directory or ParticipantDirectory()

	@property
	def directory(self) -> ParticipantDirectory:
		return self._directory

	async def find_or_create_conversation(self, user_a: str, user_b: str, job_id: Optional[str] = None) -> Conversation:
		if not user_a or not user_b:
			raise ValidationError("participant_required")
		if str(user_a) == str(user_b):
			raise ValidationError("cannot_message_self")
		key = ConversationKey.from_participants(user_a, user_b, job_id)
		conversation, created = await self._repo.find_or_create_conversation(key, datetime.now(timezone.utc))
		if created:
			obs_metrics.inc_conversation_created()
			LOGGER.info("conversation created", extra={"conversation_id": conversation.id})
		return conversation

	async def get_conversation_for(self, conversation_id: str, user_id: str) -> Conversation:
		conversation = await self._repo.get_conversation(conversation_id)
		if conversation is None:
			raise NotFound("conversation_not_found")
		if not conversation.is_participant(user_id):
			raise Forbidden("not_a_participant")
		return conversation

	async def list_conversations_for_user(self, user_id: str) -> List[ConversationSummary]:
		threads = await self._repo.list_threads(user_id)
		user_ids = {uid for thread in threads for uid in thread.conversation.participants()}
		participants = await self._directory.users(user_ids)
		jobs = await self._directory.jobs(thread.conversation.job_id for thread in threads)
		return [ConversationSummary.from_thread(thread, participants, jobs) for thread in threads]

	async def get_messages(self, conversation_id: str, requesting_user_id: str) -> List[MessageResponse]:
		conversation = await self.get_conversation_for(conversation_id, requesting_user_id)
		# Already-read messages keep their original readAt
		updated = await self._repo.mark_read(conversation.id, requesting_user_id, datetime.now(timezone.utc))
		obs_metrics.inc_chat_read(updated)
		messages = await self._repo.list_messages(conversation.id)
		participants = await self._directory.users(conversation.participants())
		return [MessageResponse.from_model(message, participants) for message in messages]

	async def append_message(
		self,
		conversation: Conversation,
		sender_id: str,
		body: str,
		job_id: Optional[str] = None,
	) -> Message:
		text = normalize_body(body)
		if not conversation.is_participant(sender_id):
			raise Forbidden("not_a_participant")
		receiver_id = conversation.other_participant(sender_id)
		return await self._repo.create_message(
			conversation,
			sender_id,
			receiver_id,
			text,
			job_id or conversation.job_id,
			datetime.now(timezone.utc),
		)

	async def get_message(self, message_id: str) -> Optional[Message]:
		return await self._repo.get_message(message_id)

	async def unread_count(self, user_id: str, conversation_id: Optional[str] = None) -> int:
		return await self._repo.count_unread(user_id, conversation_id)


_SERVICE = ConversationService()


def get_service() -> ConversationService:
	return _SERVICE


async def find_or_create_conversation(user_a: str, user_b: str, job_id: Optional[str] = None) -> Conversation:
	return await _SERVICE.find_or_create_conversation(user_a, user_b, job_id)


async def list_conversations_for_user(user_id: str) -> List[ConversationSummary]:
	return await _SERVICE.list_conversations_for_user(user_id)


async def get_messages(conversation_id: str, requesting_user_id: str) -> List[MessageResponse]:
	return await _SERVICE.get_messages(conversation_id, requesting_user_id)


async def unread_count(user_id: str, conversation_id: Optional[str] = None) -> int:
	return await _SERVICE.unread_count(user_id, conversation_id)
