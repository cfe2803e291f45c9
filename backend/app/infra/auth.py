"""Authentication helpers for FastAPI endpoints and Socket.IO handshakes.

- Access tokens are HS256 JWTs issued by the job-board auth service.
- Dev headers are only respected in development.
- A reusable roles guard is available for FastAPI routes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.domain.common.errors import Unauthorized
from app.infra import jwt as jwt_helper
from app.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: str
	name: Optional[str] = None
	email: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return self.role == role


_bearer_scheme = HTTPBearer(auto_error=False)


def authenticate(credential: Optional[str]) -> AuthenticatedUser:
	"""Resolve a bearer credential to a user identity or raise Unauthorized.

	Requirements:
	- issuer/audience from settings
	- required claims: sub, role, exp, iat
	- role is one of jobseeker, employer, admin
	"""
	token = (credential or "").strip()
	if token.lower().startswith("bearer "):
		token = token.split(" ", 1)[1].strip()
	if not token:
		raise Unauthorized("missing_token")
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token
		raise Unauthorized("invalid_token") from None

	name = payload.get("name")
	email = payload.get("email")
	return AuthenticatedUser(
		id=str(payload["sub"]).strip(),
		role=str(payload["role"]),
		name=str(name) if name is not None else None,
		email=str(email) if email is not None else None,
	)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	try:
		return authenticate(token)
	except Unauthorized as exc:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.reason) from None


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	x_user_name: Optional[str] = Header(default=None, alias="X-User-Name"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	# In dev only, allow X-User-* fallback for local tools
	if settings.is_dev() and x_user_id:
		role = (x_user_role or "jobseeker").strip()
		if role not in jwt_helper.ROLES:
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
		return AuthenticatedUser(id=x_user_id.strip(), role=role, name=x_user_name)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


def require_roles(*required: Iterable[str]):
	"""Return a dependency that enforces one of the given roles.

	Usage:
		@router.post("/notifications/dispatch", dependencies=[Depends(require_roles("admin"))])
	"""
	required_set = {str(r).strip() for r in required if str(r).strip()}

	async def _dep(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
		if not required_set:
			return user
		if any(user.has_role(r) for r in required_set):
			return user
		raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")

	return _dep
