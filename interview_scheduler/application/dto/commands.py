from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from interview_scheduler.domain.entities.slot import MeetingDetails


@dataclass(frozen=True)
class Recurrence:
    frequency: str  # "daily", "weekly", "monthly"
    until: date
    days_of_week: tuple[int, ...] = ()  # 0=Monday .. 6=Sunday


@dataclass(frozen=True)
class SlotSpec:
    date: date
    start_time: str
    end_time: str
    title: str = "Interview Slot"
    duration_minutes: int | None = None
    timezone: str | None = None
    max_bookings: int = 1
    meeting_type: str = "video"
    meeting_details: MeetingDetails = field(default_factory=MeetingDetails)
    buffer_before: int = 0
    buffer_after: int = 0
    recurrence: Recurrence | None = None


@dataclass(frozen=True)
class SlotChanges:
    date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    title: str | None = None
    timezone: str | None = None
    max_bookings: int | None = None
    is_available: bool | None = None
    meeting_type: str | None = None
    meeting_details: MeetingDetails | None = None
    buffer_before: int | None = None
    buffer_after: int | None = None

    @property
    def moves_time(self) -> bool:
        return any(v is not None for v in (self.date, self.start_time, self.end_time))


@dataclass(frozen=True)
class BookingRequest:
    slot_id: str
    job_id: str
    candidate_id: str | None = None
    interview_type: str = "screening"
    candidate_notes: str = ""
    recruitment_partner_id: str | None = None
    application_id: str | None = None


@dataclass(frozen=True)
class FeedbackInput:
    rating: int | None = None
    comments: str | None = None
    recommendation: str | None = None
    strengths: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()
    next_steps: str | None = None


@dataclass(frozen=True)
class ApplicationStatusChange:
    application_id: str
    candidate_id: str
    job_id: str
    new_status: str
    recruitment_partner_id: str | None = None
