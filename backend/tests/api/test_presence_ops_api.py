import pytest

from app.domain.presence import get_tracker
from app.settings import settings


@pytest.mark.asyncio
async def test_presence_endpoints_reflect_tracker(api_client, dev_headers):
	tracker = get_tracker()
	await tracker.register_session("user-b", "sid-1")
	await tracker.register_session("user-a", "sid-2")

	online = await api_client.get("/presence/online", headers=dev_headers("user-c"))
	single = await api_client.get("/presence/user-b", headers=dev_headers("user-c"))
	offline = await api_client.get("/presence/user-z", headers=dev_headers("user-c"))

	assert online.json() == {"users": ["user-a", "user-b"]}
	assert single.json() == {"userId": "user-b", "online": True}
	assert offline.json() == {"userId": "user-z", "online": False}


@pytest.mark.asyncio
async def test_liveness_and_request_id(api_client):
	resp = await api_client.get("/health/live", headers={"X-Request-Id": "req-123"})

	assert resp.status_code == 200
	assert resp.json() == {"status": "ok"}
	assert resp.headers["X-Request-Id"] == "req-123"


@pytest.mark.asyncio
async def test_readiness_degraded_without_postgres(api_client):
	resp = await api_client.get("/health/ready")

	assert resp.status_code == 503
	body = resp.json()
	assert body["status"] == "degraded"
	assert body["checks"]["postgres"]["ok"] is False
	assert body["checks"]["presence"]["ok"] is True


@pytest.mark.asyncio
async def test_metrics_fail_closed_without_token(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", None)

	resp = await api_client.get("/metrics", headers={"X-Admin-Token": "whatever"})

	assert resp.status_code == 403
	assert resp.json()["detail"] == "admin_token_not_configured"


@pytest.mark.asyncio
async def test_metrics_with_admin_token(api_client, monkeypatch):
	monkeypatch.setattr(settings, "obs_metrics_public", False)
	monkeypatch.setattr(settings, "obs_admin_token", "secret-token")

	wrong = await api_client.get("/metrics", headers={"X-Admin-Token": "wrong-token"})
	right = await api_client.get("/metrics", headers={"X-Admin-Token": "secret-token"})

	assert wrong.status_code == 403
	assert wrong.json()["detail"] == "forbidden"
	assert right.status_code == 200
	assert "jobboard_" in right.text
