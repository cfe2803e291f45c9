"""FastAPI endpoints exposing the live presence set."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.domain.common.schemas import CamelModel
from app.domain.presence import get_tracker
from app.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/presence", tags=["presence"])


class OnlineUsersResponse(CamelModel):
	users: list[str]


class UserPresenceResponse(CamelModel):
	user_id: str
	online: bool


@router.get("/online", response_model=OnlineUsersResponse)
async def online_users_endpoint(
	_: AuthenticatedUser = Depends(get_current_user),
) -> OnlineUsersResponse:
	return OnlineUsersResponse(users=get_tracker().online_users())


@router.get("/{user_id}", response_model=UserPresenceResponse)
async def user_presence_endpoint(
	user_id: str,
	_: AuthenticatedUser = Depends(get_current_user),
) -> UserPresenceResponse:
	return UserPresenceResponse(user_id=user_id, online=get_tracker().is_online(user_id))
