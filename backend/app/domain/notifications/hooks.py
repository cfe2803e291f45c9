"""Notification helpers for job-board collaborator events.

Applications and interviews are managed by the CRUD service; these helpers
give each event one consistent title, body and deep link.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from .models import NotificationKind
from .schemas import NotificationResponse
from .service import notify

ApplicationStatus = Literal["pending", "reviewed", "shortlisted", "interview", "rejected", "hired"]
RequestKind = Literal["reschedule", "cancel"]


def _when(value: datetime) -> str:
	return value.strftime("%Y-%m-%d %H:%M %Z").strip()


async def notify_application_received(
	*,
	employer_id: str,
	applicant_name: str,
	job_id: str,
	job_title: str,
	application_id: str,
) -> Optional[NotificationResponse]:
	return await notify(
		employer_id,
		NotificationKind.APPLICATION.value,
		"New application received",
		body=f"{applicant_name} applied to {job_title}",
		link=f"/employer/jobs/{job_id}/applicants",
		meta={"jobId": job_id, "applicationId": application_id},
	)


async def notify_application_status(
	*,
	applicant_id: str,
	job_title: str,
	status: ApplicationStatus,
	application_id: str,
) -> Optional[NotificationResponse]:
	return await notify(
		applicant_id,
		NotificationKind.APPLICATION.value,
		"Application status updated",
		body=f"Your application for {job_title} was marked as {status}",
		link="/applied-jobs",
		meta={"applicationId": application_id},
	)


async def notify_application_withdrawn(
	*,
	employer_id: str,
	applicant_name: str,
	job_id: str,
	job_title: str,
	application_id: str,
) -> Optional[NotificationResponse]:
	return await notify(
		employer_id,
		NotificationKind.APPLICATION.value,
		"Application withdrawn",
		body=f"{applicant_name} withdrew their application for {job_title}",
		link=f"/employer/jobs/{job_id}/applicants",
		meta={"applicationId": application_id, "jobId": job_id},
	)


async def notify_interview_scheduled(
	*,
	candidate_id: str,
	job_title: str,
	interview_id: str,
) -> Optional[NotificationResponse]:
	return await notify(
		candidate_id,
		NotificationKind.INTERVIEW.value,
		"Interview scheduled",
		body=f"Interview scheduled for {job_title}",
		link="/interviews",
		meta={"interviewId": interview_id},
	)


async def notify_interview_updated(
	*,
	candidate_id: str,
	interview_id: str,
	previous_at: Optional[datetime] = None,
	scheduled_at: Optional[datetime] = None,
	canceled: bool = False,
) -> Optional[NotificationResponse]:
	if canceled:
		title = "Interview canceled"
		body = "Your interview has been canceled by the employer."
	else:
		title = "Interview updated"
		if previous_at and scheduled_at:
			body = f"Interview updated from {_when(previous_at)} to {_when(scheduled_at)}"
		else:
			body = "Your interview details were updated."
	return await notify(
		candidate_id,
		NotificationKind.INTERVIEW.value,
		title,
		body=body,
		link="/interviews",
		meta={"interviewId": interview_id},
	)


async def notify_interview_request(
	*,
	employer_id: str,
	interview_id: str,
	request: RequestKind,
) -> Optional[NotificationResponse]:
	if request == "cancel":
		title = "Interview cancel requested"
		body = "A candidate requested to cancel an interview."
	else:
		title = "Reschedule requested"
		body = "A candidate requested to reschedule an interview."
	return await notify(
		employer_id,
		NotificationKind.INTERVIEW.value,
		title,
		body=body,
		link="/interviews",
		meta={"interviewId": interview_id},
	)
