"""Socket.IO namespace for the live channel."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

import socketio
from pydantic import ValidationError as PayloadError
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from app.domain.chat import delivery
from app.domain.chat import service as conversations
from app.domain.common.errors import Unauthorized
from app.domain.notifications import service as notifications
from app.domain.presence import PresenceTracker, get_tracker
from app.infra.auth import AuthenticatedUser, authenticate
from app.obs import logging as obs_logging
from app.obs import metrics as obs_metrics

from . import transport
from .events import MessageReceived, MessagesUnread, NotificationsUnread, PresenceUpdate

LOGGER = logging.getLogger(__name__)


def _header(scope: dict, name: str) -> Optional[str]:
	target = name.encode().lower()
	for key, value in scope.get("headers", []):
		if key.lower() == target:
			return value.decode()
	return None


def _credential(environ: dict, auth: Any) -> Optional[str]:
	"""Handshake credential: ``auth.token``, then the Authorization header, then ``?token=``."""
	if isinstance(auth, dict) and auth.get("token"):
		return str(auth["token"])
	scope = environ.get("asgi.scope", environ)
	header = _header(scope, "authorization") or environ.get("HTTP_AUTHORIZATION")
	if header:
		return header
	query = environ.get("QUERY_STRING") or scope.get("query_string", b"")
	if isinstance(query, bytes):
		query = query.decode()
	tokens = parse_qs(query or "").get("token")
	return tokens[0] if tokens else None


class RealtimeNamespace(socketio.AsyncNamespace):
	"""Authenticated live channel: presence, message receipts and unread catch-up."""

	def __init__(self, namespace: str = "/", tracker: PresenceTracker | None = None) -> None:
		super().__init__(namespace)
		self._tracker = tracker or get_tracker()
		self._sessions: Dict[str, AuthenticatedUser] = {}

	def user_for(self, sid: str) -> Optional[AuthenticatedUser]:
		return self._sessions.get(sid)

	async def trigger_event(self, event: str, *args):
		# Wire names use ":" ("message:received"); handlers use "_"
		return await super().trigger_event(event.replace(":", "_"), *args)

	async def on_connect(self, sid: str, environ: dict, auth: Any = None) -> None:
		try:
			user = authenticate(_credential(environ, auth))
		except Unauthorized as exc:
			obs_metrics.socket_connect_reject(exc.reason)
			raise SocketConnectionRefused("unauthorized") from None
		obs_metrics.socket_connected(self.namespace)
		tokens = obs_logging.bind_context(user_id=user.id, sid=sid)
		try:
			self._sessions[sid] = user
			await self._tracker.register_session(user.id, sid)
			await self._emit_unread_counts(sid, user)
			LOGGER.info("socket connected")
		finally:
			obs_logging.reset_context(tokens)

	async def on_disconnect(self, sid: str, reason: Any = None) -> None:
		user = self._sessions.pop(sid, None)
		if user is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		await self._tracker.unregister_session(user.id, sid)

	async def on_message_received(self, sid: str, payload: Any = None) -> None:
		obs_metrics.socket_event(self.namespace, MessageReceived.EVENT)
		user = self._sessions.get(sid)
		if user is None:
			return
		try:
			receipt = MessageReceived.model_validate(payload or {})
		except PayloadError:
			LOGGER.info("invalid receipt payload dropped", extra={"sid": sid})
			return
		try:
			await delivery.acknowledge_receipt(user, receipt.message_id, receipt.sender_id)
		except Exception:
			obs_metrics.inc_chat_delivered_dropped("store_error")
			LOGGER.warning("delivery receipt failed", exc_info=True, extra={"message_id": receipt.message_id})

	async def _emit_unread_counts(self, sid: str, user: AuthenticatedUser) -> None:
		try:
			notification_count = await notifications.unread_count(user.id)
			message_count = await conversations.unread_count(user.id)
		except Exception:
			LOGGER.warning("unread count lookup failed", exc_info=True)
			return
		await transport.emit_to_session(sid, NotificationsUnread(count=notification_count))
		await transport.emit_to_session(sid, MessagesUnread(count=message_count))


async def broadcast_presence(users: list[str]) -> None:
	await transport.broadcast(PresenceUpdate(users=users))


def register(sio: socketio.AsyncServer, tracker: PresenceTracker | None = None) -> RealtimeNamespace:
	"""Register the namespace on ``sio`` and route pushes through it."""
	tracker = tracker or get_tracker()
	namespace = RealtimeNamespace(tracker=tracker)
	sio.register_namespace(namespace)
	transport.set_namespace(namespace)
	tracker.set_broadcaster(broadcast_presence)
	return namespace
