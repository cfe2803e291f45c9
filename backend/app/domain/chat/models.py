"""Domain models for conversations and messages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(slots=True, frozen=True)
class ConversationKey:
	"""Canonical lookup key for a conversation: the sorted pair plus optional job."""

	user_a: str
	user_b: str
	job_id: Optional[str] = None

	@classmethod
	def from_participants(cls, user_one: str, user_two: str, job_id: Optional[str] = None) -> "ConversationKey":
		ordered = tuple(sorted((str(user_one), str(user_two))))
		return cls(user_a=ordered[0], user_b=ordered[1], job_id=str(job_id) if job_id else None)

	@property
	def job_key(self) -> str:
		return self.job_id or ""

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)


@dataclass(slots=True)
class Conversation:
	id: str
	user_a: str
	user_b: str
	job_id: Optional[str]
	last_message_id: Optional[str]
	created_at: datetime
	updated_at: datetime

	@property
	def key(self) -> ConversationKey:
		return ConversationKey(self.user_a, self.user_b, self.job_id)

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)

	def is_participant(self, user_id: str) -> bool:
		return user_id in (self.user_a, self.user_b)

	def other_participant(self, user_id: str) -> str:
		if user_id == self.user_a:
			return self.user_b
		if user_id == self.user_b:
			return self.user_a
		raise ValueError("not_a_participant")


@dataclass(slots=True)
class Message:
	id: str
	conversation_id: str
	sender_id: str
	receiver_id: str
	body: str
	job_id: Optional[str]
	created_at: datetime
	is_read: bool = False
	read_at: Optional[datetime] = None


@dataclass(slots=True)
class ConversationThread:
	"""A conversation as seen by one participant."""

	conversation: Conversation
	last_message: Optional[Message]
	unread_count: int
