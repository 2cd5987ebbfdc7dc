from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

from interview_scheduler.application.use_cases.availability import AvailabilityResult, SlotAvailability
from interview_scheduler.application.use_cases.bookings import BookingStats
from interview_scheduler.application.use_cases.invitations import InvitationContext, InvitationResult
from interview_scheduler.domain.entities.booking import Booking, Feedback, RescheduleEntry
from interview_scheduler.domain.entities.slot import MeetingDetails, Slot


class MeetingDetailsSchema(BaseModel):
    location: str | None = None
    video_link: str | None = None
    phone_number: str | None = None
    instructions: str | None = None

    def to_domain(self) -> MeetingDetails:
        return MeetingDetails(**self.model_dump())

    @classmethod
    def from_domain(cls, details: MeetingDetails) -> "MeetingDetailsSchema":
        return cls(
            location=details.location,
            video_link=details.video_link,
            phone_number=details.phone_number,
            instructions=details.instructions,
        )


class RecurrenceSchema(BaseModel):
    frequency: Literal["daily", "weekly", "monthly"]
    until: dt.date
    days_of_week: list[int] = Field(default_factory=list)


class SlotCreateSchema(BaseModel):
    date: dt.date
    start_time: str
    end_time: str
    title: str = "Interview Slot"
    duration_minutes: int | None = None
    timezone: str | None = None
    max_bookings: int = 1
    meeting_type: str = "video"
    meeting_details: MeetingDetailsSchema = Field(default_factory=MeetingDetailsSchema)
    buffer_before: int = 0
    buffer_after: int = 0
    recurrence: RecurrenceSchema | None = None


class SlotUpdateSchema(BaseModel):
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    title: str | None = None
    timezone: str | None = None
    max_bookings: int | None = None
    is_available: bool | None = None
    meeting_type: str | None = None
    meeting_details: MeetingDetailsSchema | None = None
    buffer_before: int | None = None
    buffer_after: int | None = None


class SlotSchema(BaseModel):
    id: str
    employer_id: str
    title: str
    date: dt.date
    start_time: str
    end_time: str
    duration_minutes: int
    timezone: str
    max_bookings: int
    current_bookings: int
    is_available: bool
    is_open: bool
    remaining: int
    meeting_type: str
    meeting_details: MeetingDetailsSchema
    buffer_before: int
    buffer_after: int

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotSchema":
        return cls(
            id=slot.id,
            employer_id=slot.employer_id,
            title=slot.title,
            date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration_minutes=slot.duration_minutes,
            timezone=slot.timezone,
            max_bookings=slot.max_bookings,
            current_bookings=slot.current_bookings,
            is_available=slot.is_available,
            is_open=slot.is_open,
            remaining=slot.remaining_capacity,
            meeting_type=slot.meeting_type,
            meeting_details=MeetingDetailsSchema.from_domain(slot.meeting_details),
            buffer_before=slot.buffer_before,
            buffer_after=slot.buffer_after,
        )


class SlotListSchema(BaseModel):
    slots: list[SlotSchema]


class AvailabilitySchema(BaseModel):
    employer_id: str
    start: dt.date
    end: dt.date
    view: str
    slots: list[SlotSchema]
    days: dict[str, list[SlotSchema]]

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilitySchema":
        def dump(items: list[SlotAvailability]) -> list[SlotSchema]:
            return [SlotSchema.from_domain(item.slot) for item in items]

        return cls(
            employer_id=result.employer_id,
            start=result.start,
            end=result.end,
            view=result.view,
            slots=dump(result.slots),
            days={day: dump(items) for day, items in result.by_day.items()},
        )


class BookingCreateSchema(BaseModel):
    slot_id: str
    job_id: str
    candidate_id: str | None = None
    interview_type: str = "screening"
    candidate_notes: str = ""
    recruitment_partner_id: str | None = None
    application_id: str | None = None


class FeedbackSchema(BaseModel):
    rating: int | None = None
    comments: str | None = None
    recommendation: str | None = None
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    next_steps: str | None = None

    @classmethod
    def from_domain(cls, feedback: Feedback) -> "FeedbackSchema":
        return cls(
            rating=feedback.rating,
            comments=feedback.comments,
            recommendation=feedback.recommendation,
            strengths=list(feedback.strengths),
            improvements=list(feedback.improvements),
            next_steps=feedback.next_steps,
        )


class StatusChangeSchema(BaseModel):
    status: str
    reason: str | None = None
    feedback: FeedbackSchema | None = None


class CancelSchema(BaseModel):
    reason: str | None = None


class RescheduleSchema(BaseModel):
    new_slot_id: str
    reason: str | None = None


class NotesSchema(BaseModel):
    notes: str
    audience: Literal["candidate", "employer"] | None = None


class RescheduleEntrySchema(BaseModel):
    previous_date: dt.date
    previous_time: str
    new_date: dt.date
    new_time: str
    reason: str
    rescheduled_by: str
    rescheduled_at: dt.datetime

    @classmethod
    def from_domain(cls, entry: RescheduleEntry) -> "RescheduleEntrySchema":
        return cls(
            previous_date=entry.previous_date,
            previous_time=entry.previous_time,
            new_date=entry.new_date,
            new_time=entry.new_time,
            reason=entry.reason,
            rescheduled_by=entry.rescheduled_by,
            rescheduled_at=entry.rescheduled_at,
        )


class BookingSchema(BaseModel):
    id: str
    slot_id: str
    employer_id: str
    candidate_id: str
    job_id: str
    application_id: str | None = None
    booking_token: str
    candidate_name: str
    candidate_email: str
    candidate_phone: str | None = None
    scheduled_date: dt.date
    scheduled_time: str
    scheduled_at: dt.datetime
    duration_minutes: int
    timezone: str
    status: str
    interview_type: str
    meeting_type: str
    meeting_details: MeetingDetailsSchema
    candidate_notes: str
    employer_notes: str
    feedback: FeedbackSchema | None = None
    reminders_sent: list[str] = Field(default_factory=list)
    reschedule_history: list[RescheduleEntrySchema] = Field(default_factory=list)
    cancellation_reason: str | None = None
    created_at: dt.datetime | None = None
    confirmed_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    cancelled_at: dt.datetime | None = None

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingSchema":
        return cls(
            id=booking.id,
            slot_id=booking.slot_id,
            employer_id=booking.employer_id,
            candidate_id=booking.candidate_id,
            job_id=booking.job_id,
            application_id=booking.application_id,
            booking_token=booking.booking_token,
            candidate_name=booking.candidate.name,
            candidate_email=booking.candidate.email,
            candidate_phone=booking.candidate.phone,
            scheduled_date=booking.scheduled_date,
            scheduled_time=booking.scheduled_time,
            scheduled_at=booking.scheduled_at,
            duration_minutes=booking.duration_minutes,
            timezone=booking.timezone,
            status=booking.status.value,
            interview_type=booking.interview_type.value,
            meeting_type=booking.meeting.type,
            meeting_details=MeetingDetailsSchema.from_domain(booking.meeting.details),
            candidate_notes=booking.notes.candidate,
            employer_notes=booking.notes.employer,
            feedback=FeedbackSchema.from_domain(booking.feedback) if booking.feedback else None,
            reminders_sent=sorted(booking.reminders.sent),
            reschedule_history=[RescheduleEntrySchema.from_domain(e) for e in booking.reschedule_history],
            cancellation_reason=booking.cancellation_reason,
            created_at=booking.created_at,
            confirmed_at=booking.confirmed_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
        )


class BookingListSchema(BaseModel):
    bookings: list[BookingSchema]
    count: int


class BookingStatsSchema(BaseModel):
    total: int
    upcoming: int
    by_status: dict[str, int]

    @classmethod
    def from_domain(cls, stats: BookingStats) -> "BookingStatsSchema":
        return cls(total=stats.total, upcoming=stats.upcoming, by_status=stats.by_status)


class ApplicationStatusSchema(BaseModel):
    application_id: str
    candidate_id: str
    job_id: str
    new_status: str
    recruitment_partner_id: str | None = None


class InvitationSchema(BaseModel):
    invited: bool
    token: str | None = None
    booking_id: str | None = None
    expires_at: dt.datetime | None = None
    scheduling_link: str | None = None

    @classmethod
    def from_result(cls, result: InvitationResult | None, link: str | None = None) -> "InvitationSchema":
        if result is None:
            return cls(invited=False)
        return cls(
            invited=True,
            token=result.invitation.token,
            booking_id=result.booking.id,
            expires_at=result.invitation.expires_at,
            scheduling_link=link,
        )


class InvitationContextSchema(BaseModel):
    booking_id: str
    status: str
    job_id: str
    job_title: str
    job_location: str | None = None
    employer_id: str
    company_name: str
    candidate_name: str
    expires_at: dt.datetime
    open_slots: list[SlotSchema]

    @classmethod
    def from_context(cls, ctx: InvitationContext) -> "InvitationContextSchema":
        return cls(
            booking_id=ctx.booking.id,
            status=ctx.invitation.status,
            job_id=ctx.job.id,
            job_title=ctx.job.title,
            job_location=ctx.job.location,
            employer_id=ctx.employer.id,
            company_name=ctx.employer.company_name,
            candidate_name=ctx.booking.candidate.name,
            expires_at=ctx.invitation.expires_at,
            open_slots=[SlotSchema.from_domain(s) for s in ctx.open_slots],
        )


class ScheduleSchema(BaseModel):
    slot_id: str
    candidate_notes: str = ""


class ReminderRunSchema(BaseModel):
    reminders: int
    booking_ids: list[str]
