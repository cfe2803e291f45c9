"""FastAPI endpoints for the notification inbox."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.timeouts import run_with_timeout
from app.domain.chat.schemas import UnreadCountResponse
from app.domain.notifications import service as notifications
from app.domain.notifications.schemas import (
	DispatchNotificationRequest,
	MarkAllReadResponse,
	NotificationListResponse,
	NotificationResponse,
)
from app.infra.auth import AuthenticatedUser, get_current_user, require_roles

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications_endpoint(
	limit: int = Query(default=notifications.DEFAULT_LIST_LIMIT, ge=1, le=notifications.MAX_LIST_LIMIT),
	unread_only: bool = Query(default=False, alias="unreadOnly"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> NotificationListResponse:
	return await run_with_timeout(
		notifications.list_notifications(auth_user.id, limit=limit, unread_only=unread_only),
		operation="notifications.list",
	)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_notifications_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> UnreadCountResponse:
	count = await run_with_timeout(notifications.unread_count(auth_user.id), operation="notifications.unread")
	return UnreadCountResponse(count=count)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read_endpoint(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> NotificationResponse:
	return await run_with_timeout(
		notifications.mark_read(notification_id, auth_user.id),
		operation="notifications.read",
	)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> MarkAllReadResponse:
	updated = await run_with_timeout(notifications.mark_all_read(auth_user.id), operation="notifications.read_all")
	return MarkAllReadResponse(updated=updated)


@router.post(
	"/dispatch",
	response_model=NotificationResponse,
	status_code=status.HTTP_201_CREATED,
)
async def dispatch_notification_endpoint(
	payload: DispatchNotificationRequest,
	_: AuthenticatedUser = Depends(require_roles("admin")),
) -> NotificationResponse:
	created = await run_with_timeout(
		notifications.notify(
			payload.user_id,
			payload.type,
			payload.title,
			body=payload.body,
			link=payload.link,
			meta=payload.meta,
		),
		operation="notifications.dispatch",
	)
	if created is None:
		raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, detail="notification_rejected")
	return created
