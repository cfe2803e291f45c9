from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.domain.chat.models import Message
from app.domain.chat.schemas import MessageResponse
from app.domain.realtime.events import MessageNew, MessageReceived, PresenceUpdate


def test_payloads_are_camel_case_and_versioned():
	message = Message(
		id="m-1",
		conversation_id="c-1",
		sender_id="alice",
		receiver_id="bob",
		body="hi",
		job_id=None,
		created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
	)
	event = MessageNew(conversation_id="c-1", message=MessageResponse.from_model(message))

	payload = event.to_payload()

	assert MessageNew.EVENT == "message:new"
	assert payload["v"] == 1
	assert payload["conversationId"] == "c-1"
	assert payload["message"]["senderId"] == "alice"
	assert payload["message"]["isRead"] is False
	assert PresenceUpdate(users=["a"]).to_payload() == {"v": 1, "users": ["a"]}


def test_receipt_accepts_camel_case_and_ignores_extra_fields():
	receipt = MessageReceived.model_validate({"messageId": "m-1", "senderId": "alice", "extra": True})

	assert receipt.message_id == "m-1"
	assert receipt.sender_id == "alice"


def test_receipt_requires_ids():
	with pytest.raises(ValidationError):
		MessageReceived.model_validate({"messageId": ""})
