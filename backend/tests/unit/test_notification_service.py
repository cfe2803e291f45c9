from datetime import datetime, timezone

import pytest

from app.domain.common.errors import Forbidden, NotFound
from app.domain.notifications import hooks
from app.domain.notifications import service as notifications
from app.domain.notifications.models import BODY_MAX_LENGTH, TITLE_MAX_LENGTH


@pytest.mark.asyncio
async def test_notify_persists_for_offline_user():
	created = await notifications.notify("bob", "interview", "Interview scheduled", body="Tomorrow", link="/interviews")

	assert created is not None
	assert created.is_read is False
	inbox = await notifications.list_notifications("bob")
	assert [item.id for item in inbox.notifications] == [created.id]
	assert inbox.unread_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"user_id,kind,title",
	[
		(None, "message", "Hi"),
		("bob", None, "Hi"),
		("bob", "message", None),
		("bob", "message", "   "),
		("bob", "promotion", "Hi"),
	],
)
async def test_notify_skips_incomplete_input(user_id, kind, title):
	assert await notifications.notify(user_id, kind, title) is None
	assert await notifications.unread_count("bob") == 0


@pytest.mark.asyncio
async def test_notify_clips_long_fields():
	created = await notifications.notify("bob", "application", "t" * 300, body="b" * 900, link="/x" * 400)

	assert len(created.title) == TITLE_MAX_LENGTH
	assert len(created.body) == BODY_MAX_LENGTH
	assert len(created.link) == 300


@pytest.mark.asyncio
async def test_list_respects_owner_and_filters():
	first = await notifications.notify("bob", "message", "first")
	second = await notifications.notify("bob", "message", "second")
	await notifications.notify("alice", "message", "other user")
	await notifications.mark_read(first.id, "bob")

	listed = await notifications.list_notifications("bob")
	assert {item.id for item in listed.notifications} == {first.id, second.id}
	assert listed.unread_count == 1

	unread = await notifications.list_notifications("bob", unread_only=True)
	assert [item.id for item in unread.notifications] == [second.id]

	limited = await notifications.list_notifications("bob", limit=0)
	assert len(limited.notifications) == 1


@pytest.mark.asyncio
async def test_mark_read_checks_ownership():
	created = await notifications.notify("bob", "message", "hello")

	with pytest.raises(Forbidden) as excinfo:
		await notifications.mark_read(created.id, "alice")
	assert excinfo.value.reason == "not_owner"

	with pytest.raises(NotFound):
		await notifications.mark_read("missing", "bob")

	updated = await notifications.mark_read(created.id, "bob")
	assert updated.is_read is True
	again = await notifications.mark_read(created.id, "bob")
	assert again.is_read is True


@pytest.mark.asyncio
async def test_mark_all_read_counts_only_unread():
	await notifications.notify("bob", "message", "one")
	await notifications.notify("bob", "message", "two")
	await notifications.notify("alice", "message", "untouched")

	assert await notifications.mark_all_read("bob") == 2
	assert await notifications.mark_all_read("bob") == 0
	assert await notifications.unread_count("bob") == 0
	assert await notifications.unread_count("alice") == 1


@pytest.mark.asyncio
async def test_application_hooks_link_to_applicants():
	created = await hooks.notify_application_received(
		employer_id="emp-1",
		applicant_name="Dana",
		job_id="job-7",
		job_title="Data Analyst",
		application_id="app-3",
	)

	assert created.type.value == "application"
	assert created.title == "New application received"
	assert created.body == "Dana applied to Data Analyst"
	assert created.link == "/employer/jobs/job-7/applicants"
	assert created.meta == {"jobId": "job-7", "applicationId": "app-3"}

	status = await hooks.notify_application_status(
		applicant_id="seeker-1",
		job_title="Data Analyst",
		status="shortlisted",
		application_id="app-3",
	)
	assert status.body == "Your application for Data Analyst was marked as shortlisted"
	assert status.link == "/applied-jobs"


@pytest.mark.asyncio
async def test_interview_hooks():
	canceled = await hooks.notify_interview_updated(candidate_id="seeker-1", interview_id="int-1", canceled=True)
	assert canceled.title == "Interview canceled"

	moved = await hooks.notify_interview_updated(
		candidate_id="seeker-1",
		interview_id="int-1",
		previous_at=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
		scheduled_at=datetime(2024, 5, 2, 14, 30, tzinfo=timezone.utc),
	)
	assert moved.title == "Interview updated"
	assert "2024-05-01 10:00" in moved.body
	assert "2024-05-02 14:30" in moved.body

	request = await hooks.notify_interview_request(employer_id="emp-1", interview_id="int-1", request="reschedule")
	assert request.title == "Reschedule requested"
	assert request.meta == {"interviewId": "int-1"}
