"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import messaging, notifications, ops, presence
from app.api.errors import install_error_handlers
from app.api.middleware_request_id import RequestIdMiddleware
from app.domain.realtime import sockets as realtime_sockets
from app.domain.realtime import transport
from app.infra import postgres
from app.infra.schema import ensure_schema
from app.obs import init as obs_init
from app.settings import settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	try:
		pool = await postgres.init_pool()
	except Exception:
		if settings.is_prod():
			raise
		LOGGER.warning("postgres unavailable at startup, repositories use in-memory stores", exc_info=True)
		postgres.enable_memory_fallback()
		pool = None
	await ensure_schema(pool)
	try:
		yield
	finally:
		transport.set_namespace(None)
		await postgres.close_pool()


app = FastAPI(title="Job Board Messaging", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:5173"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True
if "*" in allow_origins:
	LOGGER.warning("wildcard CORS origin ignored")
	allow_origins = [origin for origin in allow_origins if origin != "*"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Use the same allowed origins for Socket.IO as for the REST API
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=allow_origins)
realtime_namespace = realtime_sockets.register(sio)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

# Ensure every request carries an X-Request-Id and make it available on request.state
app.add_middleware(RequestIdMiddleware)

app.include_router(messaging.router)
app.include_router(notifications.router)
app.include_router(presence.router)
app.include_router(ops.router)
