"""AsyncPG pool management for the backend."""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from app.settings import settings

LOGGER = logging.getLogger(__name__)

_pool: Optional[asyncpg.pool.Pool] = None
_memory_fallback = False


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


def enable_memory_fallback() -> None:
	"""Route every repository to its in-memory store for the rest of the process."""
	global _memory_fallback
	_memory_fallback = True


class PooledRepository:
	"""Repository base that uses the shared pool, or None when Postgres is unreachable.

	Callers fall back to their in-memory store on None. The fallback is decided
	once per process so data never splits between memory and Postgres.
	Production never falls back: the pool error propagates.
	"""

	def __init__(self) -> None:
		self._pool: Optional[asyncpg.pool.Pool] = None

	async def _pool_or_none(self) -> Optional[asyncpg.pool.Pool]:
		if self._pool is not None:
			return self._pool
		if _memory_fallback:
			return None
		try:
			self._pool = await get_pool()
		except Exception:
			if settings.is_prod():
				raise
			enable_memory_fallback()
			LOGGER.warning("postgres unavailable, using in-memory stores", extra={"repository": type(self).__name__})
			return None
		return self._pool


def affected_rows(status: str) -> int:
	"""Row count from an asyncpg command tag such as ``UPDATE 3``."""
	try:
		return int(status.rsplit(" ", 1)[-1])
	except (ValueError, IndexError):
		return 0
