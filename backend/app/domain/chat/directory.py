"""Display lookups for participants and jobs.

Users and jobs are owned by the job-board CRUD service. Lookups degrade to
id-only entries when that data is unavailable.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from app.infra.postgres import PooledRepository

from .schemas import JobInfo, ParticipantInfo

LOGGER = logging.getLogger(__name__)

_USERS: Dict[str, ParticipantInfo] = {}
_JOBS: Dict[str, JobInfo] = {}


def register_user(user_id: str, *, name: Optional[str] = None, email: Optional[str] = None, role: Optional[str] = None) -> None:
	_USERS[str(user_id)] = ParticipantInfo(id=str(user_id), name=name, email=email, role=role)


def register_job(job_id: str, *, title: Optional[str] = None, company_name: Optional[str] = None) -> None:
	_JOBS[str(job_id)] = JobInfo(id=str(job_id), title=title, company_name=company_name)


def reset_registry() -> None:
	_USERS.clear()
	_JOBS.clear()


class ParticipantDirectory(PooledRepository):
	async def users(self, user_ids: Iterable[str]) -> Dict[str, ParticipantInfo]:
		ids = sorted({str(uid) for uid in user_ids if uid})
		resolved: Dict[str, ParticipantInfo] = {
			uid: _USERS.get(uid) or ParticipantInfo(id=uid) for uid in ids
		}
		if not ids:
			return resolved
		pool = await self._pool_or_none()
		if pool is None:
			return resolved
		try:
			async with pool.acquire() as conn:
				rows = await conn.fetch(
					"""
					SELECT id::text AS id, name, email, role
					FROM users
					WHERE id::text = ANY($1::text[])
					""",
					ids,
				)
		except Exception:
			LOGGER.warning("user directory lookup failed", exc_info=True, extra={"count": len(ids)})
			return resolved
		for row in rows:
			resolved[row["id"]] = ParticipantInfo(
				id=row["id"],
				name=row["name"],
				email=row["email"],
				role=row["role"],
			)
		return resolved

	async def jobs(self, job_ids: Iterable[Optional[str]]) -> Dict[str, JobInfo]:
		ids = sorted({str(jid) for jid in job_ids if jid})
		resolved: Dict[str, JobInfo] = {jid: _JOBS.get(jid) or JobInfo(id=jid) for jid in ids}
		if not ids:
			return resolved
		pool = await self._pool_or_none()
		if pool is None:
			return resolved
		try:
			async with pool.acquire() as conn:
				rows = await conn.fetch(
					"""
					SELECT id::text AS id, title, company_name
					FROM jobs
					WHERE id::text = ANY($1::text[])
					""",
					ids,
				)
		except Exception:
			LOGGER.warning("job directory lookup failed", exc_info=True, extra={"count": len(ids)})
			return resolved
		for row in rows:
			resolved[row["id"]] = JobInfo(id=row["id"], title=row["title"], company_name=row["company_name"])
		return resolved
