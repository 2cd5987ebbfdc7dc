from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from interview_scheduler.domain.entities.slot import MeetingDetails, combine_local


class BookingStatus(str, Enum):
    scheduled = "scheduled"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled_by_candidate = "cancelled_by_candidate"
    cancelled_by_employer = "cancelled_by_employer"
    no_show_candidate = "no_show_candidate"
    no_show_employer = "no_show_employer"
    rescheduled = "rescheduled"


class InterviewType(str, Enum):
    screening = "screening"
    technical = "technical"
    behavioral = "behavioral"
    final = "final"
    other = "other"


RECOMMENDATIONS = ("strong_hire", "hire", "maybe", "no_hire", "strong_no_hire")
REMINDER_LEADS = ("24h", "1h", "15m")
AUDIENCES = ("candidate", "employer")


@dataclass(frozen=True)
class CandidateSnapshot:
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class Meeting:
    type: str = "video"
    details: MeetingDetails = field(default_factory=MeetingDetails)


@dataclass(frozen=True)
class BookingNotes:
    candidate: str = ""
    employer: str = ""


@dataclass(frozen=True)
class Feedback:
    rating: int | None = None
    comments: str | None = None
    recommendation: str | None = None
    strengths: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()
    next_steps: str | None = None


@dataclass(frozen=True)
class RescheduleEntry:
    previous_date: date
    previous_time: str
    new_date: date
    new_time: str
    reason: str
    rescheduled_by: str
    rescheduled_at: datetime


@dataclass(frozen=True)
class ReminderFlags:
    # keyed "<audience>:<lead>", e.g. "candidate:24h"
    sent: frozenset[str] = frozenset()

    def is_sent(self, audience: str, lead: str) -> bool:
        return f"{audience}:{lead}" in self.sent

    def mark(self, audience: str, lead: str) -> "ReminderFlags":
        return ReminderFlags(sent=self.sent | {f"{audience}:{lead}"})


@dataclass(frozen=True)
class Booking:
    id: str
    slot_id: str
    employer_id: str
    candidate_id: str
    job_id: str
    booking_token: str
    candidate: CandidateSnapshot
    scheduled_date: date
    scheduled_time: str
    duration_minutes: int = 60
    timezone: str = "America/New_York"
    status: BookingStatus = BookingStatus.scheduled
    interview_type: InterviewType = InterviewType.screening
    meeting: Meeting = field(default_factory=Meeting)
    application_id: str | None = None
    recruitment_partner_id: str | None = None
    notes: BookingNotes = field(default_factory=BookingNotes)
    feedback: Feedback | None = None
    reminders: ReminderFlags = field(default_factory=ReminderFlags)
    reschedule_history: tuple[RescheduleEntry, ...] = ()
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def scheduled_at(self) -> datetime:
        return combine_local(self.scheduled_date, self.scheduled_time, self.timezone)
