"""Push helpers over the registered Socket.IO namespace.

Targets come from the presence tracker: a user with no live sessions gets
nothing and catches up from the durable store on the next fetch. Write
errors are logged and counted, never raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

import socketio

from app.domain.presence import get_tracker
from app.obs import metrics as obs_metrics

from .events import LiveEvent

LOGGER = logging.getLogger(__name__)

_namespace: Optional[socketio.AsyncNamespace] = None


def set_namespace(namespace: Optional[socketio.AsyncNamespace]) -> None:
	global _namespace
	_namespace = namespace


def get_namespace() -> Optional[socketio.AsyncNamespace]:
	return _namespace


async def emit_to_session(sid: str, event: LiveEvent) -> bool:
	if _namespace is None:
		return False
	try:
		await _namespace.emit(event.EVENT, event.to_payload(), to=sid)
	except Exception:
		obs_metrics.socket_push_failure(event.EVENT)
		LOGGER.warning("live push failed", exc_info=True, extra={"event": event.EVENT, "sid": sid})
		return False
	obs_metrics.socket_event(_namespace.namespace, event.EVENT)
	return True


async def push_to_user(user_id: str, event: LiveEvent) -> int:
	"""Emit ``event`` to every live session of ``user_id``; returns the number reached."""
	delivered = 0
	for sid in sorted(get_tracker().sessions_for(user_id)):
		if await emit_to_session(sid, event):
			delivered += 1
	return delivered


async def broadcast(event: LiveEvent) -> None:
	if _namespace is None:
		return
	try:
		await _namespace.emit(event.EVENT, event.to_payload())
	except Exception:
		obs_metrics.socket_push_failure(event.EVENT)
		LOGGER.warning("live broadcast failed", exc_info=True, extra={"event": event.EVENT})
		return
	obs_metrics.socket_event(_namespace.namespace, event.EVENT)
