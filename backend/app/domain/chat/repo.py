"""Persistence for conversations and messages."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import asyncpg
import ulid

from app.infra.postgres import PooledRepository, affected_rows

from .models import Conversation, ConversationKey, ConversationThread, Message

_CONVERSATION_COLUMNS = "id, user_a, user_b, job_id, last_message_id, created_at, updated_at"
_MESSAGE_COLUMNS = "id, conversation_id, sender_id, receiver_id, body, job_id, is_read, read_at, created_at"


class _InMemoryStore:
	"""Fallback store used in tests when Postgres is unavailable."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._conversations: Dict[str, Conversation] = {}
		self._by_key: Dict[Tuple[str, str, str], str] = {}
		self._messages: Dict[str, List[Message]] = {}

	async def clear(self) -> None:
		async with self._lock:
			self._conversations.clear()
			self._by_key.clear()
			self._messages.clear()

	async def find_or_create_conversation(self, key: ConversationKey, now: datetime) -> Tuple[Conversation, bool]:
		async with self._lock:
			lookup = (key.user_a, key.user_b, key.job_key)
			existing = self._by_key.get(lookup)
			if existing is not None:
				return self._conversations[existing], False
			conversation = Conversation(
				id=str(ulid.new()),
				user_a=key.user_a,
				user_b=key.user_b,
				job_id=key.job_id,
				last_message_id=None,
				created_at=now,
				updated_at=now,
			)
			self._conversations[conversation.id] = conversation
			self._by_key[lookup] = conversation.id
			self._messages[conversation.id] = []
			return conversation, True

	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		async with self._lock:
			return self._conversations.get(conversation_id)

	async def list_threads(self, user_id: str) -> List[ConversationThread]:
		async with self._lock:
			threads: List[ConversationThread] = []
			for conversation in self._conversations.values():
				if not conversation.is_participant(user_id):
					continue
				messages = self._messages.get(conversation.id, [])
				last_message = next((m for m in messages if m.id == conversation.last_message_id), None)
				unread = sum(1 for m in messages if m.receiver_id == user_id and not m.is_read)
				threads.append(ConversationThread(conversation, last_message, unread))
			threads.sort(key=lambda t: t.conversation.updated_at, reverse=True)
			return threads

	async def list_messages(self, conversation_id: str) -> List[Message]:
		async with self._lock:
			messages = list(self._messages.get(conversation_id, []))
			# Stable sort keeps insertion order for equal timestamps
			messages.sort(key=lambda m: m.created_at)
			return messages

	async def create_message(
		self,
		conversation: Conversation,
		sender_id: str,
		receiver_id: str,
		body: str,
		job_id: Optional[str],
		created_at: datetime,
	) -> Message:
		async with self._lock:
			message = Message(
				id=str(ulid.new()),
				conversation_id=conversation.id,
				sender_id=sender_id,
				receiver_id=receiver_id,
				body=body,
				job_id=job_id,
				created_at=created_at,
			)
			self._messages.setdefault(conversation.id, []).append(message)
			stored = self._conversations.get(conversation.id)
			if stored is not None and stored.updated_at <= created_at:
				stored.last_message_id = message.id
				stored.updated_at = created_at
			return message

	async def get_message(self, message_id: str) -> Optional[Message]:
		async with self._lock:
			for messages in self._messages.values():
				for message in messages:
					if message.id == message_id:
						return message
			return None

	async def mark_read(self, conversation_id: str, reader_id: str, read_at: datetime) -> int:
		async with self._lock:
			updated = 0
			for message in self._messages.get(conversation_id, []):
				if message.receiver_id == reader_id and not message.is_read:
					message.is_read = True
					message.read_at = read_at
					updated += 1
			return updated

	async def count_unread(self, user_id: str, conversation_id: Optional[str] = None) -> int:
		async with self._lock:
			if conversation_id is not None:
				pools = [self._messages.get(conversation_id, [])]
			else:
				pools = list(self._messages.values())
			return sum(
				1
				for messages in pools
				for m in messages
				if m.receiver_id == user_id and not m.is_read
			)


_MEMORY_STORE = _InMemoryStore()


class ChatRepository(PooledRepository):
	"""Repository backed by asyncpg with an in-memory fallback."""

	async def find_or_create_conversation(self, key: ConversationKey, now: datetime) -> Tuple[Conversation, bool]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.find_or_create_conversation(key, now)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO conversations (id, user_a, user_b, job_id, job_key, created_at, updated_at)
				VALUES ($1, $2, $3, $4, $5, $6, $6)
				ON CONFLICT (user_a, user_b, job_key) DO NOTHING
				RETURNING {_CONVERSATION_COLUMNS}
				""",
				str(ulid.new()),
				key.user_a,
				key.user_b,
				key.job_id,
				key.job_key,
				now,
			)
			if row is not None:
				return self._row_to_conversation(row), True
			row = await conn.fetchrow(
				f"""
				SELECT {_CONVERSATION_COLUMNS}
				FROM conversations
				WHERE user_a = $1 AND user_b = $2 AND job_key = $3
				""",
				key.user_a,
				key.user_b,
				key.job_key,
			)
			return self._row_to_conversation(row), False

	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.get_conversation(conversation_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"SELECT {_CONVERSATION_COLUMNS} FROM conversations WHERE id = $1",
				conversation_id,
			)
			return self._row_to_conversation(row) if row else None

	async def list_threads(self, user_id: str) -> List[ConversationThread]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.list_threads(user_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT
					c.id, c.user_a, c.user_b, c.job_id, c.last_message_id, c.created_at, c.updated_at,
					m.id AS m_id, m.sender_id AS m_sender_id, m.receiver_id AS m_receiver_id,
					m.body AS m_body, m.job_id AS m_job_id, m.is_read AS m_is_read,
					m.read_at AS m_read_at, m.created_at AS m_created_at,
					(
						SELECT COUNT(*)
						FROM messages u
						WHERE u.conversation_id = c.id AND u.receiver_id = $1 AND u.is_read = FALSE
					) AS unread_count
				FROM conversations c
				LEFT JOIN messages m ON m.id = c.last_message_id
				WHERE c.user_a = $1 OR c.user_b = $1
				ORDER BY c.updated_at DESC
				""",
				user_id,
			)
		threads: List[ConversationThread] = []
		for row in rows:
			conversation = self._row_to_conversation(row)
			last_message = None
			if row["m_id"] is not None:
				last_message = Message(
					id=str(row["m_id"]),
					conversation_id=conversation.id,
					sender_id=str(row["m_sender_id"]),
					receiver_id=str(row["m_receiver_id"]),
					body=row["m_body"],
					job_id=row["m_job_id"],
					is_read=bool(row["m_is_read"]),
					read_at=row["m_read_at"],
					created_at=row["m_created_at"],
				)
			threads.append(ConversationThread(conversation, last_message, int(row["unread_count"])))
		return threads

	async def list_messages(self, conversation_id: str) -> List[Message]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.list_messages(conversation_id)
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_MESSAGE_COLUMNS}
				FROM messages
				WHERE conversation_id = $1
				ORDER BY created_at ASC, id ASC
				""",
				conversation_id,
			)
			return [self._row_to_message(row) for row in rows]

	async def create_message(
		self,
		conversation: Conversation,
		sender_id: str,
		receiver_id: str,
		body: str,
		job_id: Optional[str],
		created_at: datetime,
	) -> Message:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.create_message(conversation, sender_id, receiver_id, body, job_id, created_at)
		async with pool.acquire() as conn:
			async with conn.transaction():
				row = await conn.fetchrow(
					f"""
					INSERT INTO messages (id, conversation_id, sender_id, receiver_id, body, job_id, created_at)
					VALUES ($1, $2, $3, $4, $5, $6, $7)
					RETURNING {_MESSAGE_COLUMNS}
					""",
					str(ulid.new()),
					conversation.id,
					sender_id,
					receiver_id,
					body,
					job_id,
					created_at,
				)
				# Concurrent appends: the newest createdAt wins the pointer
				await conn.execute(
					"""
					UPDATE conversations
					SET last_message_id = $2, updated_at = $3
					WHERE id = $1 AND updated_at <= $3
					""",
					conversation.id,
					row["id"],
					created_at,
				)
				return self._row_to_message(row)

	async def get_message(self, message_id: str) -> Optional[Message]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.get_message(message_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE id = $1",
				message_id,
			)
			return self._row_to_message(row) if row else None

	async def mark_read(self, conversation_id: str, reader_id: str, read_at: datetime) -> int:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.mark_read(conversation_id, reader_id, read_at)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"""
				UPDATE messages
				SET is_read = TRUE, read_at = $3
				WHERE conversation_id = $1 AND receiver_id = $2 AND is_read = FALSE
				""",
				conversation_id,
				reader_id,
				read_at,
			)
			return affected_rows(status)

	async def count_unread(self, user_id: str, conversation_id: Optional[str] = None) -> int:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.count_unread(user_id, conversation_id)
		async with pool.acquire() as conn:
			if conversation_id is None:
				value = await conn.fetchval(
					"SELECT COUNT(*) FROM messages WHERE receiver_id = $1 AND is_read = FALSE",
					user_id,
				)
			else:
				value = await conn.fetchval(
					"""
					SELECT COUNT(*) FROM messages
					WHERE receiver_id = $1 AND conversation_id = $2 AND is_read = FALSE
					""",
					user_id,
					conversation_id,
				)
			return int(value or 0)

	def _row_to_conversation(self, row: asyncpg.Record) -> Conversation:
		return Conversation(
			id=str(row["id"]),
			user_a=str(row["user_a"]),
			user_b=str(row["user_b"]),
			job_id=row["job_id"],
			last_message_id=row["last_message_id"],
			created_at=row["created_at"],
			updated_at=row["updated_at"],
		)

	def _row_to_message(self, row: asyncpg.Record) -> Message:
		return Message(
			id=str(row["id"]),
			conversation_id=str(row["conversation_id"]),
			sender_id=str(row["sender_id"]),
			receiver_id=str(row["receiver_id"]),
			body=row["body"],
			job_id=row["job_id"],
			is_read=bool(row["is_read"]),
			read_at=row["read_at"],
			created_at=row["created_at"],
		)


async def reset_memory_store() -> None:
	await _MEMORY_STORE.clear()
