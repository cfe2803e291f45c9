"""Persistence for notifications."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg
import ulid

from app.infra.postgres import PooledRepository, affected_rows

from .models import Notification, NotificationKind

_COLUMNS = "id, user_id, type, title, body, link, meta, is_read, created_at"


class _InMemoryStore:
	"""Fallback store used in tests when Postgres is unavailable."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._items: Dict[str, Notification] = {}

	async def clear(self) -> None:
		async with self._lock:
			self._items.clear()

	async def create(self, notification: Notification) -> Notification:
		async with self._lock:
			self._items[notification.id] = notification
			return notification

	async def get(self, notification_id: str) -> Optional[Notification]:
		async with self._lock:
			return self._items.get(notification_id)

	async def list_for_user(self, user_id: str, *, limit: int, unread_only: bool) -> List[Notification]:
		async with self._lock:
			items = [
				n
				for n in self._items.values()
				if n.user_id == user_id and (not unread_only or not n.is_read)
			]
		items.sort(key=lambda n: (n.created_at, n.id), reverse=True)
		return items[:limit]

	async def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
		async with self._lock:
			item = self._items.get(notification_id)
			if item is None or item.user_id != user_id:
				return None
			item.is_read = True
			return item

	async def mark_all_read(self, user_id: str) -> int:
		async with self._lock:
			updated = 0
			for item in self._items.values():
				if item.user_id == user_id and not item.is_read:
					item.is_read = True
					updated += 1
			return updated

	async def count_unread(self, user_id: str) -> int:
		async with self._lock:
			return sum(1 for n in self._items.values() if n.user_id == user_id and not n.is_read)


_MEMORY_STORE = _InMemoryStore()


class NotificationRepository(PooledRepository):
	"""Repository backed by asyncpg with an in-memory fallback."""

	async def create(
		self,
		*,
		user_id: str,
		kind: NotificationKind,
		title: str,
		body: Optional[str],
		link: Optional[str],
		meta: Dict[str, Any],
		created_at: datetime,
	) -> Notification:
		notification = Notification(
			id=str(ulid.new()),
			user_id=user_id,
			type=kind,
			title=title,
			body=body,
			link=link,
			meta=meta,
			created_at=created_at,
		)
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.create(notification)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				INSERT INTO notifications (id, user_id, type, title, body, link, meta, created_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8)
				RETURNING {_COLUMNS}
				""",
				notification.id,
				user_id,
				kind.value,
				title,
				body,
				link,
				json.dumps(meta),
				created_at,
			)
			return self._map_row(row)

	async def get(self, notification_id: str) -> Optional[Notification]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.get(notification_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(f"SELECT {_COLUMNS} FROM notifications WHERE id = $1", notification_id)
			return self._map_row(row) if row else None

	async def list_for_user(self, user_id: str, *, limit: int, unread_only: bool = False) -> List[Notification]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.list_for_user(user_id, limit=limit, unread_only=unread_only)
		unread_clause = " AND is_read = FALSE" if unread_only else ""
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM notifications
				WHERE user_id = $1{unread_clause}
				ORDER BY created_at DESC, id DESC
				LIMIT $2
				""",
				user_id,
				limit,
			)
			return [self._map_row(row) for row in rows]

	async def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.mark_read(notification_id, user_id)
		async with pool.acquire() as conn:
			row = await conn.fetchrow(
				f"""
				UPDATE notifications
				SET is_read = TRUE
				WHERE id = $1 AND user_id = $2
				RETURNING {_COLUMNS}
				""",
				notification_id,
				user_id,
			)
			return self._map_row(row) if row else None

	async def mark_all_read(self, user_id: str) -> int:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.mark_all_read(user_id)
		async with pool.acquire() as conn:
			status = await conn.execute(
				"UPDATE notifications SET is_read = TRUE WHERE user_id = $1 AND is_read = FALSE",
				user_id,
			)
			return affected_rows(status)

	async def count_unread(self, user_id: str) -> int:
		pool = await self._pool_or_none()
		if pool is None:
			return await _MEMORY_STORE.count_unread(user_id)
		async with pool.acquire() as conn:
			value = await conn.fetchval(
				"SELECT COUNT(*) FROM notifications WHERE user_id = $1 AND is_read = FALSE",
				user_id,
			)
			return int(value or 0)

	def _map_row(self, row: asyncpg.Record) -> Notification:
		meta = row["meta"]
		if isinstance(meta, str):
			meta = json.loads(meta) if meta else {}
		return Notification(
			id=str(row["id"]),
			user_id=str(row["user_id"]),
			type=NotificationKind(row["type"]),
			title=row["title"],
			body=row["body"],
			link=row["link"],
			meta=meta or {},
			is_read=bool(row["is_read"]),
			created_at=row["created_at"],
		)


async def reset_memory_store() -> None:
	await _MEMORY_STORE.clear()
