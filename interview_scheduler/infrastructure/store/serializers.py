from __future__ import annotations

from datetime import date, datetime
from typing import Any

from interview_scheduler.domain.entities.booking import (
    Booking,
    BookingNotes,
    BookingStatus,
    CandidateSnapshot,
    Feedback,
    InterviewType,
    Meeting,
    ReminderFlags,
    RescheduleEntry,
)
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.slot import MeetingDetails, Slot


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def _parse_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def _serialize_meeting_details(details: MeetingDetails) -> dict[str, Any]:
    return {
        "location": details.location,
        "video_link": details.video_link,
        "phone_number": details.phone_number,
        "instructions": details.instructions,
    }


def _deserialize_meeting_details(data: dict[str, Any] | None) -> MeetingDetails:
    data = data or {}
    return MeetingDetails(
        location=data.get("location"),
        video_link=data.get("video_link"),
        phone_number=data.get("phone_number"),
        instructions=data.get("instructions"),
    )


def serialize_slot(slot: Slot) -> dict[str, Any]:
    return {
        "id": slot.id,
        "employer_id": slot.employer_id,
        "title": slot.title,
        "date": slot.date.isoformat(),
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "duration_minutes": slot.duration_minutes,
        "timezone": slot.timezone,
        "max_bookings": slot.max_bookings,
        "current_bookings": slot.current_bookings,
        "is_available": slot.is_available,
        "meeting_type": slot.meeting_type,
        "meeting_details": _serialize_meeting_details(slot.meeting_details),
        "buffer_before": slot.buffer_before,
        "buffer_after": slot.buffer_after,
        "is_placeholder": slot.is_placeholder,
        "created_at": _iso(slot.created_at),
        "updated_at": _iso(slot.updated_at),
    }


def deserialize_slot(data: dict[str, Any]) -> Slot:
    return Slot(
        id=data["id"],
        employer_id=data["employer_id"],
        title=data.get("title", "Interview Slot"),
        date=_parse_date(data["date"]),
        start_time=data["start_time"],
        end_time=data["end_time"],
        duration_minutes=data.get("duration_minutes", 60),
        timezone=data.get("timezone", "America/New_York"),
        max_bookings=data.get("max_bookings", 1),
        current_bookings=data.get("current_bookings", 0),
        is_available=data.get("is_available", True),
        meeting_type=data.get("meeting_type", "video"),
        meeting_details=_deserialize_meeting_details(data.get("meeting_details")),
        buffer_before=data.get("buffer_before", 0),
        buffer_after=data.get("buffer_after", 0),
        is_placeholder=data.get("is_placeholder", False),
        created_at=_parse_datetime(data.get("created_at")),
        updated_at=_parse_datetime(data.get("updated_at")),
    )


def serialize_booking(booking: Booking) -> dict[str, Any]:
    feedback = None
    if booking.feedback is not None:
        feedback = {
            "rating": booking.feedback.rating,
            "comments": booking.feedback.comments,
            "recommendation": booking.feedback.recommendation,
            "strengths": list(booking.feedback.strengths),
            "improvements": list(booking.feedback.improvements),
            "next_steps": booking.feedback.next_steps,
        }
    return {
        "id": booking.id,
        "slot_id": booking.slot_id,
        "employer_id": booking.employer_id,
        "candidate_id": booking.candidate_id,
        "job_id": booking.job_id,
        "application_id": booking.application_id,
        "recruitment_partner_id": booking.recruitment_partner_id,
        "booking_token": booking.booking_token,
        "status": booking.status.value,
        "interview_type": booking.interview_type.value,
        "candidate": {
            "name": booking.candidate.name,
            "email": booking.candidate.email,
            "phone": booking.candidate.phone,
        },
        "meeting": {
            "type": booking.meeting.type,
            "details": _serialize_meeting_details(booking.meeting.details),
        },
        "scheduled_date": booking.scheduled_date.isoformat(),
        "scheduled_time": booking.scheduled_time,
        "duration_minutes": booking.duration_minutes,
        "timezone": booking.timezone,
        "notes": {"candidate": booking.notes.candidate, "employer": booking.notes.employer},
        "feedback": feedback,
        "reminders_sent": sorted(booking.reminders.sent),
        "reschedule_history": [
            {
                "previous_date": entry.previous_date.isoformat(),
                "previous_time": entry.previous_time,
                "new_date": entry.new_date.isoformat(),
                "new_time": entry.new_time,
                "reason": entry.reason,
                "rescheduled_by": entry.rescheduled_by,
                "rescheduled_at": entry.rescheduled_at.isoformat(),
            }
            for entry in booking.reschedule_history
        ],
        "cancellation_reason": booking.cancellation_reason,
        "created_at": _iso(booking.created_at),
        "updated_at": _iso(booking.updated_at),
        "confirmed_at": _iso(booking.confirmed_at),
        "completed_at": _iso(booking.completed_at),
        "cancelled_at": _iso(booking.cancelled_at),
    }


def deserialize_booking(data: dict[str, Any]) -> Booking:
    candidate = data.get("candidate") or {}
    meeting = data.get("meeting") or {}
    notes = data.get("notes") or {}
    feedback_data = data.get("feedback")
    feedback = None
    if feedback_data:
        feedback = Feedback(
            rating=feedback_data.get("rating"),
            comments=feedback_data.get("comments"),
            recommendation=feedback_data.get("recommendation"),
            strengths=tuple(feedback_data.get("strengths") or ()),
            improvements=tuple(feedback_data.get("improvements") or ()),
            next_steps=feedback_data.get("next_steps"),
        )
    return Booking(
        id=data["id"],
        slot_id=data["slot_id"],
        employer_id=data["employer_id"],
        candidate_id=data["candidate_id"],
        job_id=data["job_id"],
        application_id=data.get("application_id"),
        recruitment_partner_id=data.get("recruitment_partner_id"),
        booking_token=data["booking_token"],
        status=BookingStatus(data.get("status", "scheduled")),
        interview_type=InterviewType(data.get("interview_type", "screening")),
        candidate=CandidateSnapshot(
            name=candidate.get("name", ""),
            email=candidate.get("email", ""),
            phone=candidate.get("phone"),
        ),
        meeting=Meeting(
            type=meeting.get("type", "video"),
            details=_deserialize_meeting_details(meeting.get("details")),
        ),
        scheduled_date=_parse_date(data["scheduled_date"]),
        scheduled_time=data["scheduled_time"],
        duration_minutes=data.get("duration_minutes", 60),
        timezone=data.get("timezone", "America/New_York"),
        notes=BookingNotes(candidate=notes.get("candidate", ""), employer=notes.get("employer", "")),
        feedback=feedback,
        reminders=ReminderFlags(sent=frozenset(data.get("reminders_sent") or ())),
        reschedule_history=tuple(
            RescheduleEntry(
                previous_date=_parse_date(entry["previous_date"]),
                previous_time=entry["previous_time"],
                new_date=_parse_date(entry["new_date"]),
                new_time=entry["new_time"],
                reason=entry.get("reason", ""),
                rescheduled_by=entry.get("rescheduled_by", ""),
                rescheduled_at=datetime.fromisoformat(entry["rescheduled_at"]),
            )
            for entry in data.get("reschedule_history") or ()
        ),
        cancellation_reason=data.get("cancellation_reason"),
        created_at=_parse_datetime(data.get("created_at")),
        updated_at=_parse_datetime(data.get("updated_at")),
        confirmed_at=_parse_datetime(data.get("confirmed_at")),
        completed_at=_parse_datetime(data.get("completed_at")),
        cancelled_at=_parse_datetime(data.get("cancelled_at")),
    )


def serialize_invitation(invitation: Invitation) -> dict[str, Any]:
    return {
        "id": invitation.id,
        "booking_id": invitation.booking_id,
        "application_id": invitation.application_id,
        "employer_id": invitation.employer_id,
        "job_id": invitation.job_id,
        "candidate_email": invitation.candidate_email,
        "token": invitation.token,
        "status": invitation.status,
        "expires_at": invitation.expires_at.isoformat(),
        "sent_at": _iso(invitation.sent_at),
        "scheduled_at": _iso(invitation.scheduled_at),
    }


def deserialize_invitation(data: dict[str, Any]) -> Invitation:
    return Invitation(
        id=data["id"],
        booking_id=data["booking_id"],
        application_id=data.get("application_id"),
        employer_id=data["employer_id"],
        job_id=data["job_id"],
        candidate_email=data["candidate_email"],
        token=data["token"],
        status=data.get("status", "sent"),
        expires_at=datetime.fromisoformat(data["expires_at"]),
        sent_at=_parse_datetime(data.get("sent_at")),
        scheduled_at=_parse_datetime(data.get("scheduled_at")),
    )
