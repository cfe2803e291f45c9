import asyncio
from unittest.mock import AsyncMock

import pytest

from app.domain.chat import delivery
from app.domain.chat.delivery import MessageDeliveryService
from app.domain.chat.schemas import SendMessageRequest
from app.domain.chat.service import ConversationService
from app.domain.common.errors import Forbidden, ValidationError
from app.domain.notifications import service as notifications
from app.domain.notifications.repo import NotificationRepository
from app.infra.auth import AuthenticatedUser


def _user(user_id: str, name: str | None = None) -> AuthenticatedUser:
	return AuthenticatedUser(id=user_id, role="jobseeker", name=name)


@pytest.mark.asyncio
async def test_send_persists_and_notifies_offline_receiver():
	result = await delivery.send_message(_user("alice", "Alice"), SendMessageRequest(content="Hello", receiver_id="bob"))

	assert result.message.body == "Hello"
	assert result.message.sender.name == "Alice"
	assert result.message.receiver_id == "bob"

	inbox = await notifications.list_notifications("bob")
	assert inbox.unread_count == 1
	notification = inbox.notifications[0]
	assert notification.type.value == "message"
	assert notification.title == "New message"
	assert notification.body == "Hello"
	assert notification.link == f"/messages?conversation={result.conversation_id}"
	assert notification.meta == {"conversationId": result.conversation_id, "messageId": result.message.id}


@pytest.mark.asyncio
async def test_notification_preview_is_truncated():
	body = "y" * 400
	await delivery.send_message(_user("alice"), SendMessageRequest(content=body, receiver_id="bob"))

	inbox = await notifications.list_notifications("bob")
	assert inbox.notifications[0].body == "y" * 140


@pytest.mark.asyncio
async def test_invalid_body_creates_nothing():
	with pytest.raises(ValidationError) as excinfo:
		await delivery.send_message(_user("alice"), SendMessageRequest(content="x" * 2001, receiver_id="bob"))

	assert excinfo.value.reason == "body_too_long"
	conversations = ConversationService()
	assert await conversations.list_conversations_for_user("alice") == []
	assert (await notifications.list_notifications("bob")).notifications == []


@pytest.mark.asyncio
async def test_send_requires_receiver_or_conversation():
	with pytest.raises(ValidationError) as excinfo:
		await delivery.send_message(_user("alice"), SendMessageRequest(content="hi"))

	assert excinfo.value.reason == "receiver_required"


@pytest.mark.asyncio
async def test_send_into_foreign_conversation_forbidden():
	first = await delivery.send_message(_user("alice"), SendMessageRequest(content="hi", receiver_id="bob"))

	with pytest.raises(Forbidden):
		await delivery.send_message(
			_user("carol"),
			SendMessageRequest(content="intrude", conversation_id=first.conversation_id),
		)


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_send():
	failing_repo = AsyncMock()
	failing_repo.create.side_effect = RuntimeError("db down")
	notifier = notifications.NotificationService(repository=failing_repo)
	service = MessageDeliveryService(notifier=notifier)

	result = await service.send(_user("alice"), SendMessageRequest(content="still sent", receiver_id="bob"))

	assert result.message.body == "still sent"
	failing_repo.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_receipt_is_relayed_only_from_real_receiver(monkeypatch):
	relayed: list[tuple[str, str]] = []

	async def fake_emit_delivered(sender_id: str, message_id: str) -> int:
		relayed.append((sender_id, message_id))
		return 1

	monkeypatch.setattr("app.domain.chat.sockets.emit_message_delivered", fake_emit_delivered)
	sent = await delivery.send_message(_user("alice"), SendMessageRequest(content="ping", receiver_id="bob"))
	message_id = sent.message.id

	assert await delivery.acknowledge_receipt(_user("carol"), message_id, "alice") is False
	assert await delivery.acknowledge_receipt(_user("bob"), message_id, "mallory") is False
	assert await delivery.acknowledge_receipt(_user("bob"), "missing", "alice") is False
	assert relayed == []

	assert await delivery.acknowledge_receipt(_user("bob"), message_id, "alice") is True
	assert relayed == [("alice", message_id)]


class _SlowNotificationRepository(NotificationRepository):
	async def create(self, **kwargs):
		await asyncio.sleep(0.2)
		return await super().create(**kwargs)


@pytest.mark.asyncio
async def test_cancelled_commit_still_publishes_notification():
	service = MessageDeliveryService(notifier=notifications.NotificationService(repository=_SlowNotificationRepository()))
	sender = _user("alice")
	pending = await service.prepare(sender, SendMessageRequest(content="late", receiver_id="bob"))

	with pytest.raises(asyncio.TimeoutError):
		await asyncio.wait_for(service.commit(sender, pending), 0.05)

	await asyncio.sleep(0.4)
	inbox = await notifications.list_notifications("bob")
	assert inbox.unread_count == 1
	assert inbox.notifications[0].body == "late"
