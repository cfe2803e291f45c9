"""Pydantic schemas for the messaging API and live-channel payloads."""

from __future__ import annotations

from datetime import datetime
from typing import List, Mapping, Optional

from pydantic import Field

from app.domain.common.schemas import CamelModel

from .models import Message, ConversationThread


class ParticipantInfo(CamelModel):
	id: str
	name: Optional[str] = None
	email: Optional[str] = None
	role: Optional[str] = None


class JobInfo(CamelModel):
	id: str
	title: Optional[str] = None
	company_name: Optional[str] = None


class SendMessageRequest(CamelModel):
	content: str = Field(..., description="Message text; trimmed before validation")
	receiver_id: Optional[str] = Field(default=None, description="Target user when starting or resolving a thread")
	conversation_id: Optional[str] = Field(default=None, description="Existing conversation to append to")
	job_id: Optional[str] = Field(default=None, description="Job context for the thread")


class MessageResponse(CamelModel):
	id: str
	conversation_id: str
	sender_id: str
	receiver_id: str
	body: str
	job_id: Optional[str] = None
	is_read: bool
	read_at: Optional[datetime] = None
	created_at: datetime
	sender: Optional[ParticipantInfo] = None
	receiver: Optional[ParticipantInfo] = None

	@classmethod
	def from_model(
		cls,
		message: Message,
		participants: Optional[Mapping[str, ParticipantInfo]] = None,
	) -> "MessageResponse":
		participants = participants or {}
		return cls(
			id=message.id,
			conversation_id=message.conversation_id,
			sender_id=message.sender_id,
			receiver_id=message.receiver_id,
			body=message.body,
			job_id=message.job_id,
			is_read=message.is_read,
			read_at=message.read_at,
			created_at=message.created_at,
			sender=participants.get(message.sender_id),
			receiver=participants.get(message.receiver_id),
		)


class MessagePreview(CamelModel):
	id: str
	body: str
	sender_id: str
	receiver_id: str
	is_read: bool
	created_at: datetime

	@classmethod
	def from_model(cls, message: Message) -> "MessagePreview":
		return cls(
			id=message.id,
			body=message.body,
			sender_id=message.sender_id,
			receiver_id=message.receiver_id,
			is_read=message.is_read,
			created_at=message.created_at,
		)


class ConversationSummary(CamelModel):
	id: str
	participants: List[ParticipantInfo]
	job: Optional[JobInfo] = None
	last_message: Optional[MessagePreview] = None
	unread_count: int = 0
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_thread(
		cls,
		thread: ConversationThread,
		participants: Mapping[str, ParticipantInfo],
		jobs: Mapping[str, JobInfo],
	) -> "ConversationSummary":
		conversation = thread.conversation
		return cls(
			id=conversation.id,
			participants=[participants.get(uid) or ParticipantInfo(id=uid) for uid in conversation.participants()],
			job=jobs.get(conversation.job_id) if conversation.job_id else None,
			last_message=MessagePreview.from_model(thread.last_message) if thread.last_message else None,
			unread_count=thread.unread_count,
			created_at=conversation.created_at,
			updated_at=conversation.updated_at,
		)


class SendMessageResponse(CamelModel):
	message: MessageResponse
	conversation_id: str


class UnreadCountResponse(CamelModel):
	count: int
