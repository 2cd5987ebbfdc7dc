from __future__ import annotations

import logging
import secrets
import uuid
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import BookingRequest, FeedbackInput
from interview_scheduler.application.exceptions import (
    AuthorizationError,
    BookingNotFoundError,
    CandidateNotFoundError,
    DuplicateBookingError,
    InvalidStatusError,
    JobNotFoundError,
    NoticeWindowError,
    SlotNotFoundError,
    SlotNotOpenError,
    TransitionNotAllowedError,
    UnauthorizedTransitionError,
    ValidationError,
)
from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.utils.date_utils import utcnow
from interview_scheduler.domain.entities.booking import (
    RECOMMENDATIONS,
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
from interview_scheduler.domain.entities.event import BookingEvent, EventType
from interview_scheduler.domain.entities.slot import Slot
from interview_scheduler.domain.transitions import (
    ACTIVE_STATUSES,
    CANCELLED_STATUSES,
    TransitionRule,
    parse_status,
    rule_for,
)


_WRITE_ATTEMPTS = 3


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    events: list[BookingEvent] = field(default_factory=list)


@dataclass(frozen=True)
class BookingStats:
    total: int
    upcoming: int
    by_status: dict[str, int]


def new_booking_token() -> str:
    return secrets.token_urlsafe(32)


def parse_interview_type(value: str) -> InterviewType:
    try:
        return InterviewType(str(value or "screening").strip().lower())
    except ValueError:
        raise ValidationError(
            f"interview_type must be one of {', '.join(t.value for t in InterviewType)}"
        ) from None


def meeting_from_slot(slot: Slot) -> Meeting:
    return Meeting(type=slot.meeting_type, details=slot.meeting_details)


def retire_slot(slots: SlotStorePort, slot_id: str) -> None:
    """Release one unit of capacity; placeholder slots left empty are removed."""
    released = slots.release(slot_id)
    if released is not None and released.is_placeholder and released.current_bookings == 0:
        slots.delete(slot_id)


class BookingUseCase:
    def __init__(
        self,
        slots: SlotStorePort,
        bookings: BookingStorePort,
        directory: DirectoryPort,
        notice_window_minutes: int = 120,
        employer_cancel_respects_notice: bool = False,
    ) -> None:
        self._slots = slots
        self._bookings = bookings
        self._directory = directory
        self._notice_window = timedelta(minutes=notice_window_minutes)
        self._employer_cancel_respects_notice = employer_cancel_respects_notice
        self._logger = logging.getLogger(__name__)

    def create_booking(self, caller: Caller, request: BookingRequest, now: datetime | None = None) -> BookingResult:
        now = now or utcnow()
        interview_type = parse_interview_type(request.interview_type)
        candidate_id = self._resolve_candidate_id(caller, request)

        job = self._directory.get_job(request.job_id)
        if job is None:
            raise JobNotFoundError("Job not found")
        candidate = self._directory.get_candidate(candidate_id)
        if candidate is None:
            raise CandidateNotFoundError("Candidate not found")

        slot = self._slots.get(request.slot_id)
        if slot is None:
            raise SlotNotFoundError("Availability slot not found")
        if slot.employer_id != job.employer_id:
            raise ValidationError("Availability slot does not belong to the job's employer")
        if slot.starts_at <= now:
            raise SlotNotOpenError("Cannot book past time slots")
        if not slot.is_open:
            raise SlotNotOpenError()

        live = [
            b
            for b in self._bookings.list_for_candidate(candidate_id)
            if b.job_id == job.id and b.status in ACTIVE_STATUSES
        ]
        if live:
            raise DuplicateBookingError("Candidate already has a scheduled interview for this job")

        reserved = self._slots.try_reserve(slot.id)
        if reserved is None:
            raise SlotNotOpenError()

        booking = Booking(
            id=str(uuid.uuid4()),
            slot_id=reserved.id,
            employer_id=reserved.employer_id,
            candidate_id=candidate_id,
            job_id=job.id,
            application_id=request.application_id,
            recruitment_partner_id=request.recruitment_partner_id,
            booking_token=new_booking_token(),
            candidate=CandidateSnapshot(
                name=candidate.display_name,
                email=candidate.email,
                phone=candidate.phone,
            ),
            scheduled_date=reserved.date,
            scheduled_time=reserved.start_time,
            duration_minutes=reserved.duration_minutes,
            timezone=reserved.timezone,
            interview_type=interview_type,
            meeting=meeting_from_slot(reserved),
            notes=BookingNotes(candidate=request.candidate_notes or ""),
            created_at=now,
            updated_at=now,
        )
        try:
            booking = self._bookings.add(booking)
        except Exception:
            self._slots.release(reserved.id)
            raise

        self._logger.info(
            "Booking created",
            extra={"booking_id": booking.id, "slot_id": reserved.id, "employer_id": reserved.employer_id},
        )
        return BookingResult(
            booking=booking,
            events=[BookingEvent(type=EventType.created, booking=booking, actor=caller.role, slot=reserved)],
        )

    def transition(
        self,
        caller: Caller,
        booking_id: str,
        status: str | BookingStatus,
        reason: str | None = None,
        feedback: FeedbackInput | None = None,
        now: datetime | None = None,
    ) -> BookingResult:
        """Apply a status change after checking the transition table, the caller and the clock."""
        now = now or utcnow()
        target = parse_status(status)
        if target is None:
            raise InvalidStatusError(f"Invalid status value: {status}")
        if target is BookingStatus.rescheduled:
            raise ValidationError("Rescheduling requires a new slot; use the reschedule operation")
        if feedback is not None and target is not BookingStatus.completed:
            raise ValidationError("Feedback can only be recorded when completing an interview")

        validated_feedback = _validate_feedback(feedback) if feedback is not None else None

        def change(current: Booking) -> Booking:
            actor = self._actor_for(caller, current)
            rule = self._check_rule(current, target, actor)
            self._check_timing(current, target, rule, actor, now)
            changes: dict = {"status": target, "updated_at": now}
            if target is BookingStatus.confirmed:
                changes["confirmed_at"] = now
            elif target in CANCELLED_STATUSES:
                changes["cancellation_reason"] = reason or ""
                changes["cancelled_at"] = now
            elif target is BookingStatus.completed:
                changes["completed_at"] = now
                if validated_feedback is not None:
                    changes["feedback"] = validated_feedback
            return replace(current, **changes)

        previous, updated = self._apply(booking_id, change)
        actor = self._actor_for(caller, previous)
        if rule_for(previous.status, target).releases_capacity:
            retire_slot(self._slots, previous.slot_id)

        self._logger.info(
            "Booking status changed",
            extra={"booking_id": updated.id, "status": target.value, "reason": reason},
        )

        events: list[BookingEvent] = []
        if target in CANCELLED_STATUSES:
            events.append(BookingEvent(type=EventType.cancelled, booking=updated, actor=actor, reason=reason or ""))
        elif target is BookingStatus.completed:
            events.append(BookingEvent(type=EventType.completed, booking=updated, actor=actor))
        return BookingResult(booking=updated, events=events)

    def cancel(self, caller: Caller, booking_id: str, reason: str | None = None, now: datetime | None = None) -> BookingResult:
        if caller.is_candidate:
            target = BookingStatus.cancelled_by_candidate
        elif caller.is_employer:
            target = BookingStatus.cancelled_by_employer
        else:
            raise UnauthorizedTransitionError("Only the candidate or the employer can cancel an interview")
        return self.transition(caller, booking_id, target, reason=reason, now=now)

    def reschedule(
        self,
        caller: Caller,
        booking_id: str,
        new_slot_id: str,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> BookingResult:
        """
        Move a booking to another slot of the same employer.
        Capacity moves with it: the new slot is reserved before the old one is released.
        """
        now = now or utcnow()
        booking = self._get(booking_id)
        self._check_movable(caller, booking, now)

        new_slot = self._slots.get(new_slot_id)
        if new_slot is None:
            raise SlotNotFoundError("New availability slot not found")
        if new_slot.employer_id != booking.employer_id:
            raise ValidationError("New slot belongs to another employer")
        if new_slot.starts_at <= now:
            raise SlotNotOpenError("Cannot book past time slots")
        if new_slot.id == booking.slot_id:
            raise ValidationError("Booking is already on this slot")

        reserved = self._slots.try_reserve(new_slot.id)
        if reserved is None:
            raise SlotNotOpenError()

        def move(current: Booking) -> Booking:
            actor = self._check_movable(caller, current, now)
            if current.slot_id == reserved.id:
                raise ValidationError("Booking is already on this slot")
            entry = RescheduleEntry(
                previous_date=current.scheduled_date,
                previous_time=current.scheduled_time,
                new_date=reserved.date,
                new_time=reserved.start_time,
                reason=reason or "",
                rescheduled_by=actor,
                rescheduled_at=now,
            )
            return replace(
                current,
                slot_id=reserved.id,
                scheduled_date=reserved.date,
                scheduled_time=reserved.start_time,
                duration_minutes=reserved.duration_minutes,
                timezone=reserved.timezone,
                meeting=meeting_from_slot(reserved),
                status=BookingStatus.rescheduled,
                reschedule_history=current.reschedule_history + (entry,),
                # reminders restart for the new time
                reminders=ReminderFlags(),
                updated_at=now,
            )

        try:
            previous, updated = self._apply(booking_id, move)
        except Exception:
            self._slots.release(reserved.id)
            raise
        retire_slot(self._slots, previous.slot_id)
        actor = self._actor_for(caller, previous)

        self._logger.info(
            "Booking rescheduled",
            extra={"booking_id": updated.id, "slot_id": reserved.id, "reason": reason},
        )
        return BookingResult(
            booking=updated,
            events=[BookingEvent(type=EventType.rescheduled, booking=updated, actor=actor, slot=reserved, reason=reason)],
        )

    def update_notes(
        self,
        caller: Caller,
        booking_id: str,
        text: str,
        audience: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        now = now or utcnow()

        def edit(current: Booking) -> Booking:
            actor = self._actor_for(caller, current)
            if audience is not None and audience != actor:
                raise AuthorizationError("Cannot edit another party's note")
            if actor == "candidate":
                notes = replace(current.notes, candidate=text.strip())
            else:
                notes = replace(current.notes, employer=text.strip())
            return replace(current, notes=notes, updated_at=now)

        return self._apply(booking_id, edit)[1]

    def get_booking(self, caller: Caller, booking_id: str) -> Booking:
        booking = self._get(booking_id)
        if not _can_view(caller, booking):
            raise AuthorizationError("Access denied")
        return booking

    def list_bookings(
        self,
        caller: Caller,
        status: str | None = None,
        upcoming: bool = False,
        past: bool = False,
        now: datetime | None = None,
    ) -> list[Booking]:
        now = now or utcnow()
        bookings = self._bookings_for(caller)

        if status:
            wanted = parse_status(status)
            if wanted is None:
                raise InvalidStatusError(f"Invalid status value: {status}")
            bookings = [b for b in bookings if b.status is wanted]
        if upcoming:
            bookings = [b for b in bookings if b.scheduled_at >= now and b.status in ACTIVE_STATUSES]
        elif past:
            bookings = [b for b in bookings if b.scheduled_at < now]
        return bookings

    def stats(self, caller: Caller, now: datetime | None = None) -> BookingStats:
        now = now or utcnow()
        bookings = self._bookings_for(caller)
        by_status = Counter(b.status.value for b in bookings)
        upcoming = sum(1 for b in bookings if b.scheduled_at >= now and b.status in ACTIVE_STATUSES)
        return BookingStats(total=len(bookings), upcoming=upcoming, by_status=dict(by_status))

    def _bookings_for(self, caller: Caller) -> list[Booking]:
        if caller.is_candidate:
            return self._bookings.list_for_candidate(caller.user_id)
        if caller.is_employer:
            return self._bookings.list_for_employer(caller.user_id)
        raise AuthorizationError("Only candidates and employers have an interview list")

    def _apply(self, booking_id: str, change: Callable[[Booking], Booking]) -> tuple[Booking, Booking]:
        """
        Re-read the booking, derive its next version and store it if nothing
        changed in between. ``change`` re-runs its checks on every attempt and
        raises to abort. Returns the stored (previous, updated) pair.
        """
        for _ in range(_WRITE_ATTEMPTS):
            current = self._get(booking_id)
            updated = self._bookings.replace_if_unchanged(current, change(current))
            if updated is not None:
                return current, updated
            self._logger.info("Booking changed concurrently, retrying", extra={"booking_id": booking_id})
        raise TransitionNotAllowedError("Interview was changed by another request, please retry")

    def _check_movable(self, caller: Caller, booking: Booking, now: datetime) -> str:
        actor = self._actor_for(caller, booking)
        rule = self._check_rule(booking, BookingStatus.rescheduled, actor)
        self._check_timing(booking, BookingStatus.rescheduled, rule, actor, now)
        return actor

    def _get(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingNotFoundError("Interview not found")
        return booking

    def _resolve_candidate_id(self, caller: Caller, request: BookingRequest) -> str:
        if caller.is_candidate:
            if request.candidate_id and request.candidate_id != caller.user_id:
                raise AuthorizationError("Candidates can only book interviews for themselves")
            return caller.user_id
        if caller.role in ("recruitment_partner", "admin"):
            if not request.candidate_id:
                raise ValidationError("candidate_id is required when booking on behalf of a candidate")
            return request.candidate_id
        raise AuthorizationError("Employers cannot book interview slots")

    @staticmethod
    def _actor_for(caller: Caller, booking: Booking) -> str:
        if caller.is_employer and caller.user_id == booking.employer_id:
            return "employer"
        if caller.is_candidate and caller.user_id == booking.candidate_id:
            return "candidate"
        raise UnauthorizedTransitionError("Access denied")

    @staticmethod
    def _check_rule(booking: Booking, target: BookingStatus, actor: str) -> TransitionRule:
        rule = rule_for(booking.status, target)
        if rule is None:
            raise TransitionNotAllowedError(
                f"Cannot change interview status from {booking.status.value} to {target.value}"
            )
        if actor not in rule.allowed_actors:
            raise UnauthorizedTransitionError(f"The {actor} cannot set status {target.value}")
        return rule

    def _check_timing(
        self,
        booking: Booking,
        target: BookingStatus,
        rule: TransitionRule,
        actor: str,
        now: datetime,
    ) -> None:
        starts_at = booking.scheduled_at
        if rule.before_start_only and now >= starts_at:
            raise TransitionNotAllowedError("Interview has already started")

        if not rule.requires_notice:
            return
        if (
            target is BookingStatus.cancelled_by_employer
            and actor == "employer"
            and not self._employer_cancel_respects_notice
        ):
            return
        if starts_at - now <= self._notice_window:
            minutes = int(self._notice_window.total_seconds() // 60)
            raise NoticeWindowError(
                f"Interview cannot be changed less than {minutes} minutes before it starts"
            )


def _can_view(caller: Caller, booking: Booking) -> bool:
    if caller.is_admin:
        return True
    if caller.is_candidate:
        return booking.candidate_id == caller.user_id
    if caller.is_employer:
        return booking.employer_id == caller.user_id
    if caller.role == "recruitment_partner":
        return booking.recruitment_partner_id == caller.user_id
    return False


def _validate_feedback(feedback: FeedbackInput) -> Feedback:
    if feedback.rating is not None and not 1 <= feedback.rating <= 5:
        raise ValidationError("rating must be between 1 and 5")
    if feedback.recommendation is not None and feedback.recommendation not in RECOMMENDATIONS:
        raise ValidationError(f"recommendation must be one of {', '.join(RECOMMENDATIONS)}")
    return Feedback(
        rating=feedback.rating,
        comments=feedback.comments,
        recommendation=feedback.recommendation,
        strengths=tuple(s.strip() for s in feedback.strengths if s and s.strip()),
        improvements=tuple(s.strip() for s in feedback.improvements if s and s.strip()),
        next_steps=feedback.next_steps,
    )
