"""Notification broadcaster: persist first, then push to live sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.domain.common.errors import Forbidden, NotFound
from app.obs import metrics as obs_metrics

from . import sockets
from .models import BODY_MAX_LENGTH, LINK_MAX_LENGTH, TITLE_MAX_LENGTH, NotificationKind
from .repo import NotificationRepository
from .schemas import NotificationListResponse, NotificationResponse

LOGGER = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100


def _clip(value: Optional[str], limit: int) -> Optional[str]:
	if value is None:
		return None
	text = str(value).strip()
	return text[:limit] or None


class NotificationService:
	def __init__(self, repository: NotificationRepository | None = None) -> None:
		self._repo = repository or NotificationRepository()

	async def notify(
		self,
		user_id: Optional[str],
		kind: Optional[str],
		title: Optional[str],
		body: Optional[str] = None,
		link: Optional[str] = None,
		meta: Optional[Dict[str, Any]] = None,
	) -> Optional[NotificationResponse]:
		"""Create a notification for ``user_id`` and push it live.

		Returns None instead of raising when the input is incomplete or the
		record could not be stored; callers never fail because of a notification.
		"""
		parsed_kind = NotificationKind.parse(kind) if kind else None
		clean_title = _clip(title, TITLE_MAX_LENGTH)
		if not user_id or parsed_kind is None or not clean_title:
			LOGGER.info("notification skipped", extra={"kind": kind, "has_user": bool(user_id)})
			obs_metrics.notification_persisted("skipped")
			return None
		try:
			notification = await self._repo.create(
				user_id=str(user_id),
				kind=parsed_kind,
				title=clean_title,
				body=_clip(body, BODY_MAX_LENGTH),
				link=_clip(link, LINK_MAX_LENGTH),
				meta=dict(meta or {}),
				created_at=datetime.now(timezone.utc),
			)
		except Exception:
			obs_metrics.notification_persisted("error")
			LOGGER.exception("notification persist failed", extra={"kind": parsed_kind.value})
			return None
		obs_metrics.notification_persisted("ok")
		response = NotificationResponse.from_model(notification)
		await sockets.emit_notification_new(notification.user_id, response)
		return response

	async def list_notifications(
		self,
		user_id: str,
		*,
		limit: int = DEFAULT_LIST_LIMIT,
		unread_only: bool = False,
	) -> NotificationListResponse:
		bounded = max(1, min(int(limit), MAX_LIST_LIMIT))
		items = await self._repo.list_for_user(user_id, limit=bounded, unread_only=unread_only)
		unread = await self._repo.count_unread(user_id)
		return NotificationListResponse(
			notifications=[NotificationResponse.from_model(item) for item in items],
			unread_count=unread,
		)

	async def mark_read(self, notification_id: str, owner_id: str) -> NotificationResponse:
		existing = await self._repo.get(notification_id)
		if existing is None:
			raise NotFound("notification_not_found")
		if existing.user_id != owner_id:
			raise Forbidden("not_owner")
		was_read = existing.is_read
		updated = await self._repo.mark_read(notification_id, owner_id)
		if updated is None:
			raise NotFound("notification_not_found")
		if not was_read:
			obs_metrics.notification_read("single")
		return NotificationResponse.from_model(updated)

	async def mark_all_read(self, owner_id: str) -> int:
		updated = await self._repo.mark_all_read(owner_id)
		obs_metrics.notification_read("all", updated)
		return updated

	async def unread_count(self, user_id: str) -> int:
		return await self._repo.count_unread(user_id)


_SERVICE = NotificationService()


def get_service() -> NotificationService:
	return _SERVICE


async def notify(
	user_id: Optional[str],
	kind: Optional[str],
	title: Optional[str],
	body: Optional[str] = None,
	link: Optional[str] = None,
	meta: Optional[Dict[str, Any]] = None,
) -> Optional[NotificationResponse]:
	return await _SERVICE.notify(user_id, kind, title, body=body, link=link, meta=meta)


async def list_notifications(user_id: str, *, limit: int = DEFAULT_LIST_LIMIT, unread_only: bool = False) -> NotificationListResponse:
	return await _SERVICE.list_notifications(user_id, limit=limit, unread_only=unread_only)


async def mark_read(notification_id: str, owner_id: str) -> NotificationResponse:
	return await _SERVICE.mark_read(notification_id, owner_id)


async def mark_all_read(owner_id: str) -> int:
	return await _SERVICE.mark_all_read(owner_id)


async def unread_count(user_id: str) -> int:
	return await _SERVICE.unread_count(user_id)
