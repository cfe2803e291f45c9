from unittest.mock import AsyncMock

import pytest
import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from app.domain.chat import delivery
from app.domain.chat.repo import ChatRepository
from app.domain.chat.schemas import SendMessageRequest
from app.domain.notifications import service as notifications
from app.domain.presence import get_tracker
from app.domain.realtime import sockets as realtime_sockets
from app.infra.auth import AuthenticatedUser


def _scope_with_authorization(token: str) -> dict:
	return {
		"asgi.scope": {
			"headers": [(b"authorization", f"Bearer {token}".encode())],
		}
	}


def _make_namespace():
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = realtime_sockets.register(server)
	namespace.emit = AsyncMock()
	return namespace


def _emitted(namespace, event: str) -> list:
	return [call for call in namespace.emit.await_args_list if call.args[0] == event]


@pytest.mark.asyncio
async def test_connect_requires_token():
	namespace = _make_namespace()

	with pytest.raises(SocketConnectionRefused):
		await namespace.trigger_event("connect", "sid-1", {"asgi.scope": {"headers": []}})

	assert get_tracker().online_users() == []
	assert namespace.user_for("sid-1") is None
	namespace.emit.assert_not_awaited()


@pytest.mark.asyncio
async def test_connect_rejects_invalid_token():
	namespace = _make_namespace()

	with pytest.raises(SocketConnectionRefused):
		await namespace.trigger_event("connect", "sid-1", {}, {"token": "not-a-jwt"})


@pytest.mark.asyncio
async def test_connect_registers_presence_and_sends_unread_counts(issue_token):
	namespace = _make_namespace()
	await notifications.notify("user-1", "message", "waiting")

	await namespace.trigger_event("connect", "sid-1", _scope_with_authorization(issue_token("user-1")))

	assert namespace.user_for("sid-1").id == "user-1"
	assert get_tracker().sessions_for("user-1") == frozenset({"sid-1"})
	presence = _emitted(namespace, "presence:update")
	assert presence[-1].args[1] == {"v": 1, "users": ["user-1"]}
	unread = _emitted(namespace, "notifications:unread")
	assert unread[0].args[1]["count"] == 1
	assert unread[0].kwargs["to"] == "sid-1"
	assert _emitted(namespace, "messages:unread")[0].args[1]["count"] == 0


@pytest.mark.asyncio
async def test_query_token_is_accepted(issue_token):
	namespace = _make_namespace()
	environ = {"QUERY_STRING": f"token={issue_token('user-2')}"}

	await namespace.trigger_event("connect", "sid-2", environ)

	assert get_tracker().is_online("user-2")


@pytest.mark.asyncio
async def test_disconnect_last_session_goes_offline(issue_token):
	namespace = _make_namespace()
	token = issue_token("user-1")
	await namespace.trigger_event("connect", "sid-1", {}, {"token": token})
	await namespace.trigger_event("connect", "sid-2", {}, {"token": token})

	await namespace.trigger_event("disconnect", "sid-1")
	assert get_tracker().is_online("user-1")

	await namespace.trigger_event("disconnect", "sid-2")
	assert not get_tracker().is_online("user-1")
	assert _emitted(namespace, "presence:update")[-1].args[1]["users"] == []


@pytest.mark.asyncio
async def test_live_message_flow_and_delivery_receipt(issue_token):
	namespace = _make_namespace()
	await namespace.trigger_event("connect", "sid-a", {}, {"token": issue_token("user-a")})
	await namespace.trigger_event("connect", "sid-b", {}, {"token": issue_token("user-b")})
	namespace.emit.reset_mock()

	sent = await delivery.send_message(
		AuthenticatedUser(id="user-a", role="jobseeker"),
		SendMessageRequest(content="Hello", receiver_id="user-b"),
	)

	new = _emitted(namespace, "message:new")
	assert len(new) == 1
	assert new[0].kwargs["to"] == "sid-b"
	assert new[0].args[1]["conversationId"] == sent.conversation_id
	assert new[0].args[1]["message"]["body"] == "Hello"
	echo = _emitted(namespace, "message:sent")
	assert [call.kwargs["to"] for call in echo] == ["sid-a"]
	pushed = _emitted(namespace, "notification:new")
	assert [call.kwargs["to"] for call in pushed] == ["sid-b"]
	assert pushed[0].args[1]["notification"]["title"] == "New message"

	namespace.emit.reset_mock()
	await namespace.trigger_event(
		"message:received",
		"sid-b",
		{"messageId": sent.message.id, "senderId": "user-a"},
	)

	delivered = _emitted(namespace, "message:delivered")
	assert len(delivered) == 1
	assert delivered[0].kwargs["to"] == "sid-a"
	assert delivered[0].args[1] == {"v": 1, "messageId": sent.message.id}


@pytest.mark.asyncio
async def test_receipt_from_unauthenticated_or_wrong_session_is_dropped(issue_token):
	namespace = _make_namespace()
	await namespace.trigger_event("connect", "sid-a", {}, {"token": issue_token("user-a")})
	await namespace.trigger_event("connect", "sid-c", {}, {"token": issue_token("user-c")})
	sent = await delivery.send_message(
		AuthenticatedUser(id="user-a", role="jobseeker"),
		SendMessageRequest(content="Hello", receiver_id="user-b"),
	)
	namespace.emit.reset_mock()

	await namespace.trigger_event("message:received", "sid-unknown", {"messageId": sent.message.id, "senderId": "user-a"})
	await namespace.trigger_event("message:received", "sid-c", {"messageId": sent.message.id, "senderId": "user-a"})
	await namespace.trigger_event("message:received", "sid-c", {"bogus": True})

	assert _emitted(namespace, "message:delivered") == []


@pytest.mark.asyncio
async def test_push_failure_is_swallowed(issue_token):
	namespace = _make_namespace()
	await namespace.trigger_event("connect", "sid-b", {}, {"token": issue_token("user-b")})
	namespace.emit = AsyncMock(side_effect=RuntimeError("socket closed"))

	sent = await delivery.send_message(
		AuthenticatedUser(id="user-a", role="jobseeker"),
		SendMessageRequest(content="Hello", receiver_id="user-b"),
	)

	assert sent.message.body == "Hello"
	assert await notifications.unread_count("user-b") == 1


@pytest.mark.asyncio
async def test_receipt_store_error_is_dropped(issue_token, monkeypatch):
	namespace = _make_namespace()
	await namespace.trigger_event("connect", "sid-b", {}, {"token": issue_token("user-b")})
	sent = await delivery.send_message(
		AuthenticatedUser(id="user-a", role="jobseeker"),
		SendMessageRequest(content="Hello", receiver_id="user-b"),
	)
	namespace.emit.reset_mock()

	async def failing_get_message(self, message_id):
		raise ConnectionError("db down")

	monkeypatch.setattr(ChatRepository, "get_message", failing_get_message)

	await namespace.trigger_event("message:received", "sid-b", {"messageId": sent.message.id, "senderId": "user-a"})

	assert _emitted(namespace, "message:delivered") == []
	assert namespace.user_for("sid-b") is not None
