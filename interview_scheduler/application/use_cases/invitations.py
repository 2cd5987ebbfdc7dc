from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import ApplicationStatusChange
from interview_scheduler.application.exceptions import (
    AuthorizationError,
    CandidateNotFoundError,
    EmployerNotFoundError,
    InvitationConsumedError,
    InvitationExpiredError,
    InvitationNotFoundError,
    JobNotFoundError,
    SlotNotFoundError,
    SlotNotOpenError,
    ValidationError,
)
from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.invitation_store import InvitationStorePort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.use_cases.bookings import (
    BookingResult,
    meeting_from_slot,
    new_booking_token,
    retire_slot,
)
from interview_scheduler.application.utils.date_utils import minutes_between, normalize_hhmm, utcnow
from interview_scheduler.domain.entities.booking import Booking, BookingNotes, BookingStatus, CandidateSnapshot
from interview_scheduler.domain.entities.event import BookingEvent, EventType
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.profile import EmployerProfile, JobProfile
from interview_scheduler.domain.entities.slot import Slot, local_date


_WRITE_ATTEMPTS = 3


@dataclass(frozen=True)
class InvitationResult:
    invitation: Invitation
    booking: Booking
    events: list[BookingEvent] = field(default_factory=list)


@dataclass(frozen=True)
class InvitationContext:
    """What the self-scheduling page needs to render for a token."""

    invitation: Invitation
    booking: Booking
    job: JobProfile
    employer: EmployerProfile
    open_slots: list[Slot] = field(default_factory=list)


class InvitationUseCase:
    def __init__(
        self,
        slots: SlotStorePort,
        bookings: BookingStorePort,
        invitations: InvitationStorePort,
        directory: DirectoryPort,
        eligible_statuses: list[str] | tuple[str, ...] = ("assessment", "phone_interview", "in_person_interview"),
        ttl_days: int = 7,
        placeholder_lead_days: int = 7,
        placeholder_start_time: str = "10:00",
        default_timezone: str = "America/New_York",
        default_duration_minutes: int = 60,
    ) -> None:
        self._slots = slots
        self._bookings = bookings
        self._invitations = invitations
        self._directory = directory
        self._eligible = set(eligible_statuses)
        self._ttl = timedelta(days=ttl_days)
        self._lead = timedelta(days=placeholder_lead_days)
        self._placeholder_start = normalize_hhmm(placeholder_start_time, "placeholder_start_time")
        self._default_timezone = default_timezone
        self._default_duration = default_duration_minutes
        self._logger = logging.getLogger(__name__)

    def handle_application_status(
        self,
        caller: Caller,
        change: ApplicationStatusChange,
        now: datetime | None = None,
    ) -> InvitationResult | None:
        """
        React to an application moving to a new status.

        Interview-eligible statuses issue a fresh invitation anchored to a
        placeholder slot and booking. Any earlier live invitation for the same
        application is voided and its placeholder pair retired. Returns None
        when the status does not call for an interview.
        """
        now = now or utcnow()
        if change.new_status not in self._eligible:
            return None

        job = self._directory.get_job(change.job_id)
        if job is None:
            raise JobNotFoundError("Job not found")
        if not caller.is_admin and not (caller.is_employer and caller.user_id == job.employer_id):
            raise AuthorizationError("Only the employer who owns the job can invite candidates")
        employer = self._directory.get_employer(job.employer_id)
        if employer is None:
            raise EmployerNotFoundError("Employer profile not found")
        candidate = self._directory.get_candidate(change.candidate_id)
        if candidate is None:
            raise CandidateNotFoundError("Candidate not found")

        self._void_previous(change.application_id, now)

        placeholder = self._slots.add(self._placeholder_slot(job.employer_id, now))
        reserved = self._slots.try_reserve(placeholder.id)
        if reserved is None:
            self._slots.delete(placeholder.id)
            raise SlotNotOpenError()

        booking = Booking(
            id=str(uuid.uuid4()),
            slot_id=reserved.id,
            employer_id=job.employer_id,
            candidate_id=candidate.id,
            job_id=job.id,
            application_id=change.application_id,
            recruitment_partner_id=change.recruitment_partner_id,
            booking_token=new_booking_token(),
            candidate=CandidateSnapshot(name=candidate.display_name, email=candidate.email, phone=candidate.phone),
            scheduled_date=reserved.date,
            scheduled_time=reserved.start_time,
            duration_minutes=reserved.duration_minutes,
            timezone=reserved.timezone,
            meeting=meeting_from_slot(reserved),
            created_at=now,
            updated_at=now,
        )
        try:
            booking = self._bookings.add(booking)
        except Exception:
            retire_slot(self._slots, reserved.id)
            raise

        invitation = self._invitations.add(
            Invitation(
                id=str(uuid.uuid4()),
                booking_id=booking.id,
                employer_id=job.employer_id,
                job_id=job.id,
                application_id=change.application_id,
                candidate_email=candidate.email,
                token=secrets.token_urlsafe(32),
                expires_at=now + self._ttl,
                sent_at=now,
            )
        )

        self._logger.info(
            "Interview invitation issued",
            extra={"booking_id": booking.id, "employer_id": job.employer_id, "status": change.new_status},
        )
        return InvitationResult(
            invitation=invitation,
            booking=booking,
            events=[
                BookingEvent(
                    type=EventType.invitation_issued,
                    booking=booking,
                    actor="employer",
                    slot=reserved,
                    invitation=invitation,
                )
            ],
        )

    def resolve(self, token: str, now: datetime | None = None) -> InvitationContext:
        now = now or utcnow()
        invitation, booking = self._live_invitation(token, now)

        job = self._directory.get_job(invitation.job_id)
        if job is None:
            raise JobNotFoundError("Job not found")
        employer = self._directory.get_employer(invitation.employer_id)
        if employer is None:
            raise EmployerNotFoundError("Employer profile not found")

        if invitation.status == "sent":
            opened = self._invitations.replace_if_unchanged(invitation, replace(invitation, status="opened"))
            if opened is None:
                invitation, booking = self._live_invitation(token, now)
            else:
                invitation = opened

        # slot dates are local to each slot; starts_at does the exact cut
        open_slots = [
            s
            for s in self._slots.list_for_employer(invitation.employer_id, now.date() - timedelta(days=1), None)
            if s.is_open and not s.is_placeholder and s.starts_at > now
        ]
        return InvitationContext(
            invitation=invitation,
            booking=booking,
            job=job,
            employer=employer,
            open_slots=open_slots,
        )

    def schedule(
        self,
        token: str,
        slot_id: str,
        candidate_notes: str = "",
        now: datetime | None = None,
    ) -> BookingResult:
        """
        Move the placeholder booking onto a real slot chosen by the candidate and confirm it.

        The invitation is claimed before any capacity is taken, so a token can
        only ever be redeemed once. A failed reservation hands the claim back.
        """
        now = now or utcnow()
        invitation, _ = self._live_invitation(token, now)

        slot = self._slots.get(slot_id)
        if slot is None:
            raise SlotNotFoundError("Availability slot not found")
        if slot.employer_id != invitation.employer_id or slot.is_placeholder:
            raise ValidationError("Slot is not offered for this invitation")
        if slot.starts_at <= now:
            raise SlotNotOpenError("Cannot book past time slots")

        invitation, claimed, booking = self._claim(token, now)
        try:
            reserved = self._slots.try_reserve(slot.id)
            if reserved is None:
                raise SlotNotOpenError()
            try:
                updated = self._bookings.replace_if_unchanged(
                    booking,
                    replace(
                        booking,
                        slot_id=reserved.id,
                        scheduled_date=reserved.date,
                        scheduled_time=reserved.start_time,
                        duration_minutes=reserved.duration_minutes,
                        timezone=reserved.timezone,
                        meeting=meeting_from_slot(reserved),
                        notes=BookingNotes(candidate=(candidate_notes or "").strip(), employer=booking.notes.employer),
                        status=BookingStatus.confirmed,
                        confirmed_at=now,
                        updated_at=now,
                    ),
                )
                if updated is None:
                    raise InvitationConsumedError("Interview was changed by another request")
            except Exception:
                self._slots.release(reserved.id)
                raise
        except Exception:
            self._invitations.replace_if_unchanged(claimed, invitation)
            raise
        retire_slot(self._slots, booking.slot_id)

        self._logger.info(
            "Interview scheduled from invitation",
            extra={"booking_id": updated.id, "slot_id": reserved.id, "employer_id": reserved.employer_id},
        )
        return BookingResult(
            booking=updated,
            events=[
                BookingEvent(
                    type=EventType.created,
                    booking=updated,
                    actor="candidate",
                    slot=reserved,
                    invitation=claimed,
                )
            ],
        )

    def _claim(self, token: str, now: datetime) -> tuple[Invitation, Invitation, Booking]:
        """Atomically mark a live invitation scheduled. Returns (before, after, booking)."""
        for _ in range(_WRITE_ATTEMPTS):
            invitation, booking = self._live_invitation(token, now)
            claimed = self._invitations.replace_if_unchanged(
                invitation, replace(invitation, status="scheduled", scheduled_at=now)
            )
            if claimed is not None:
                return invitation, claimed, booking
        raise InvitationConsumedError("Interview has already been scheduled")

    def _live_invitation(self, token: str, now: datetime) -> tuple[Invitation, Booking]:
        invitation = self._invitations.get_by_token(token)
        if invitation is None or invitation.status == "voided":
            raise InvitationNotFoundError("Invalid or expired booking link")
        booking = self._bookings.get(invitation.booking_id)
        if booking is None:
            raise InvitationNotFoundError("Invalid or expired booking link")

        if invitation.status == "scheduled" or booking.status is not BookingStatus.scheduled:
            raise InvitationConsumedError("Interview has already been scheduled")
        if invitation.is_expired(now):
            if invitation.status != "expired":
                self._invitations.replace_if_unchanged(invitation, replace(invitation, status="expired"))
            raise InvitationExpiredError("This booking link has expired")
        return invitation, booking

    def _void_previous(self, application_id: str, now: datetime) -> None:
        for previous in self._invitations.list_for_application(application_id):
            if not self._void(previous):
                continue
            booking = self._bookings.get(previous.booking_id)
            if booking is None or booking.status is not BookingStatus.scheduled:
                continue
            cancelled = self._bookings.replace_if_unchanged(
                booking,
                replace(
                    booking,
                    status=BookingStatus.cancelled_by_employer,
                    cancellation_reason="Invitation resent",
                    cancelled_at=now,
                    updated_at=now,
                ),
            )
            if cancelled is None:
                continue
            retire_slot(self._slots, booking.slot_id)
            self._logger.info(
                "Previous invitation voided",
                extra={"booking_id": booking.id, "slot_id": booking.slot_id, "reason": "resend"},
            )

    def _void(self, invitation: Invitation) -> bool:
        """Void a live invitation; False if it is (or became) no longer live."""
        for _ in range(_WRITE_ATTEMPTS):
            if invitation is None or not invitation.is_live:
                return False
            if self._invitations.replace_if_unchanged(invitation, replace(invitation, status="voided")):
                return True
            invitation = self._invitations.get_by_token(invitation.token)
        return False

    def _placeholder_slot(self, employer_id: str, now: datetime) -> Slot:
        day = local_date(now + self._lead, self._default_timezone)
        start = datetime.strptime(self._placeholder_start, "%H:%M")
        end = (start + timedelta(minutes=self._default_duration)).strftime("%H:%M")
        if end <= self._placeholder_start:
            end = "23:59"
        return Slot(
            id=str(uuid.uuid4()),
            employer_id=employer_id,
            title="Interview Invitation",
            date=day,
            start_time=self._placeholder_start,
            end_time=end,
            duration_minutes=minutes_between(self._placeholder_start, end),
            timezone=self._default_timezone,
            max_bookings=1,
            is_placeholder=True,
            created_at=now,
            updated_at=now,
        )
