import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jobboard-messaging-0123456789")

from app.domain.chat import directory
from app.domain.chat.repo import reset_memory_store as reset_chat_store
from app.domain.notifications.repo import reset_memory_store as reset_notification_store
from app.domain.presence import get_tracker
from app.domain.realtime import transport
from app.infra import jwt as jwt_helper
from app.infra import postgres
from app.main import app
from app.settings import settings


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	Most API tests authenticate via X-User-Id/X-User-Role headers, which are only
	accepted in dev mode. Dev mode also lets repositories fall back to memory.
	"""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest_asyncio.fixture(autouse=True)
async def reset_state():
	tracker = get_tracker()
	original_namespace = transport.get_namespace()
	await reset_chat_store()
	await reset_notification_store()
	await tracker.reset()
	directory.reset_registry()
	try:
		yield
	finally:
		transport.set_namespace(original_namespace)
		await tracker.reset()
		await reset_chat_store()
		await reset_notification_store()
		directory.reset_registry()


@pytest_asyncio.fixture
async def api_client():
	transport_ = ASGITransport(app=app)
	async with AsyncClient(transport=transport_, base_url="http://testserver") as client:
		yield client


@pytest.fixture
def issue_token():
	def _issue(user_id: str, role: str = "jobseeker", **claims) -> str:
		payload = {"sub": user_id, "role": role}
		payload.update(claims)
		return jwt_helper.encode_access(payload)

	return _issue


@pytest.fixture
def dev_headers():
	def _headers(user_id: str, role: str = "jobseeker", name: str | None = None) -> dict[str, str]:
		headers = {"X-User-Id": user_id, "X-User-Role": role}
		if name:
			headers["X-User-Name"] = name
		return headers

	return _headers
