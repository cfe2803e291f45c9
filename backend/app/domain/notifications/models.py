"""Domain models for notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

TITLE_MAX_LENGTH = 120
BODY_MAX_LENGTH = 500
LINK_MAX_LENGTH = 300


class NotificationKind(str, Enum):
	MESSAGE = "message"
	INTERVIEW = "interview"
	APPLICATION = "application"

	@classmethod
	def parse(cls, value: object) -> Optional["NotificationKind"]:
		try:
			return cls(str(value))
		except ValueError:
			return None


@dataclass(slots=True)
class Notification:
	id: str
	user_id: str
	type: NotificationKind
	title: str
	created_at: datetime
	body: Optional[str] = None
	link: Optional[str] = None
	meta: Dict[str, Any] = field(default_factory=dict)
	is_read: bool = False
