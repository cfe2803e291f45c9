"""Table bootstrap for the messaging core.

Users and jobs belong to the job-board CRUD service; only the tables this
service owns are created here.
"""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS conversations (
	id TEXT PRIMARY KEY,
	user_a TEXT NOT NULL,
	user_b TEXT NOT NULL,
	job_id TEXT,
	job_key TEXT NOT NULL DEFAULT '',
	last_message_id TEXT,
	created_at TIMESTAMPTZ NOT NULL,
	updated_at TIMESTAMPTZ NOT NULL,
	CHECK (user_a < user_b)
);
CREATE UNIQUE INDEX IF NOT EXISTS conversations_pair_job_uidx
	ON conversations (user_a, user_b, job_key);
CREATE INDEX IF NOT EXISTS conversations_user_a_updated_idx
	ON conversations (user_a, updated_at DESC);
CREATE INDEX IF NOT EXISTS conversations_user_b_updated_idx
	ON conversations (user_b, updated_at DESC);

CREATE TABLE IF NOT EXISTS messages (
	id TEXT PRIMARY KEY,
	conversation_id TEXT NOT NULL REFERENCES conversations (id),
	sender_id TEXT NOT NULL,
	receiver_id TEXT NOT NULL,
	body TEXT NOT NULL,
	job_id TEXT,
	is_read BOOLEAN NOT NULL DEFAULT FALSE,
	read_at TIMESTAMPTZ,
	created_at TIMESTAMPTZ NOT NULL,
	CHECK (sender_id <> receiver_id),
	CHECK (char_length(body) >= 1)
);
CREATE INDEX IF NOT EXISTS messages_conversation_created_idx
	ON messages (conversation_id, created_at);
CREATE INDEX IF NOT EXISTS messages_receiver_unread_idx
	ON messages (receiver_id, is_read);

CREATE TABLE IF NOT EXISTS notifications (
	id TEXT PRIMARY KEY,
	user_id TEXT NOT NULL,
	type TEXT NOT NULL CHECK (type IN ('message', 'interview', 'application')),
	title VARCHAR(120) NOT NULL,
	body VARCHAR(500),
	link VARCHAR(300),
	meta JSONB NOT NULL DEFAULT '{}'::jsonb,
	is_read BOOLEAN NOT NULL DEFAULT FALSE,
	created_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS notifications_user_unread_created_idx
	ON notifications (user_id, is_read, created_at DESC);
"""


async def ensure_schema(pool: Optional[asyncpg.pool.Pool]) -> None:
	if pool is None:
		return
	async with pool.acquire() as conn:
		await conn.execute(SCHEMA_SQL)
	LOGGER.info("messaging schema ensured")
