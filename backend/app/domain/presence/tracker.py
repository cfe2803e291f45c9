"""Presence tracker: live session handles per user.

State is process-local and rebuilt from live connections after a restart.
All mutation goes through ``register_session``/``unregister_session`` under
one lock; reads return copies.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional, Set

from app.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

PresenceBroadcaster = Callable[[List[str]], Awaitable[None]]


class PresenceTracker:
	def __init__(self, broadcaster: Optional[PresenceBroadcaster] = None) -> None:
		self._lock = asyncio.Lock()
		self._sessions: Dict[str, Set[str]] = {}
		self._broadcaster = broadcaster

	def set_broadcaster(self, broadcaster: Optional[PresenceBroadcaster]) -> None:
		self._broadcaster = broadcaster

	async def register_session(self, user_id: str, handle: str) -> bool:
		"""Add ``handle`` for ``user_id``; returns True when the user just came online."""
		async with self._lock:
			handles = self._sessions.setdefault(user_id, set())
			came_online = not handles
			handles.add(handle)
			self._record()
		await self.broadcast_presence()
		return came_online

	async def unregister_session(self, user_id: str, handle: str) -> bool:
		"""Remove ``handle``; returns True when it was the user's last session."""
		async with self._lock:
			handles = self._sessions.get(user_id)
			went_offline = False
			if handles is not None:
				handles.discard(handle)
				if not handles:
					del self._sessions[user_id]
					went_offline = True
			self._record()
		await self.broadcast_presence()
		return went_offline

	def is_online(self, user_id: str) -> bool:
		return bool(self._sessions.get(user_id))

	def sessions_for(self, user_id: str) -> FrozenSet[str]:
		return frozenset(self._sessions.get(user_id, ()))

	def online_users(self) -> List[str]:
		return sorted(self._sessions)

	async def broadcast_presence(self) -> None:
		if self._broadcaster is None:
			return
		users = self.online_users()
		obs_metrics.inc_presence_broadcast()
		try:
			await self._broadcaster(users)
		except Exception:
			LOGGER.warning("presence broadcast failed", exc_info=True, extra={"online": len(users)})

	async def reset(self) -> None:
		async with self._lock:
			self._sessions.clear()
			self._record()

	def _record(self) -> None:
		obs_metrics.presence_snapshot(
			users=len(self._sessions),
			sessions=sum(len(handles) for handles in self._sessions.values()),
		)


_TRACKER = PresenceTracker()


def get_tracker() -> PresenceTracker:
	return _TRACKER
