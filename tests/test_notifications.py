"""
Tests for notification composition, best-effort dispatch and reminders.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from conftest import CANDIDATE_A, EMPLOYER, NOW, book, make_slot
from interview_scheduler.application.dto.commands import ApplicationStatusChange
from interview_scheduler.application.ports.email_transport import EmailMessage, EmailResult, EmailTransportPort
from interview_scheduler.application.ports.notification_sink import NotificationSinkPort
from interview_scheduler.application.use_cases.bookings import BookingUseCase
from interview_scheduler.application.use_cases.notifications import NotificationDispatcher, ReminderUseCase, compose
from interview_scheduler.domain.entities.booking import BookingStatus
from interview_scheduler.domain.entities.event import BookingEvent, EventType
from interview_scheduler.domain.entities.profile import CandidateProfile
from interview_scheduler.domain.entities.slot import MeetingDetails
from interview_scheduler.infrastructure.email.mock_email import MockEmailTransport
from interview_scheduler.infrastructure.notifications.memory_sink import MemoryNotificationSink
from interview_scheduler.infrastructure.store.memory_store import MemoryBookingStore


class BrokenSink(NotificationSinkPort):
    def send(self, recipient_id: str, title: str, message: str, severity: str = "info") -> None:
        raise ConnectionError("sink down")


class BrokenEmail(EmailTransportPort):
    def send_email(self, message: EmailMessage) -> EmailResult:
        raise TimeoutError("smtp timeout")


class RejectingEmail(EmailTransportPort):
    def send_email(self, message: EmailMessage) -> EmailResult:
        return EmailResult(success=False, error="domain not verified")


def _booking(slots, bookings):
    slot = make_slot(slots, date(2025, 3, 10), "09:00", "09:30")
    return book(bookings, CANDIDATE_A, slot.id).booking


def test_created_notifies_both_parties(slots, bookings):
    booking = _booking(slots, bookings)
    records = compose(BookingEvent(type=EventType.created, booking=booking, actor="candidate"))

    assert [(r.recipient_id, r.title, r.severity) for r in records] == [
        ("cand-a", "Interview Scheduled", "success"),
        ("emp-1", "Interview Booked", "info"),
    ]
    assert "Monday, March 10, 2025 at 09:00" in records[0].message
    assert records[1].message.startswith("Ana Lopez has booked an interview")


def test_cancellation_notifies_the_other_party(slots, bookings):
    booking = _booking(slots, bookings)

    by_candidate = compose(BookingEvent(type=EventType.cancelled, booking=booking, actor="candidate", reason="sick"))
    assert [r.recipient_id for r in by_candidate] == ["emp-1"]
    assert by_candidate[0].message.endswith("Reason: sick")
    assert by_candidate[0].severity == "warning"

    by_employer = compose(BookingEvent(type=EventType.cancelled, booking=booking, actor="employer", reason="conflict"))
    assert [r.recipient_id for r in by_employer] == ["cand-a"]
    assert "cancelled by the employer" in by_employer[0].message


def test_reminder_and_completion_texts(slots, bookings):
    booking = _booking(slots, bookings)

    reminder = compose(BookingEvent(type=EventType.reminder, booking=booking, reminder_lead="15m"))
    assert reminder[0].message == "Reminder: Your interview starts in 15 minutes at 09:00."
    assert reminder[1].recipient_id == "emp-1"

    completed = compose(BookingEvent(type=EventType.completed, booking=booking, actor="employer"))
    assert [r.title for r in completed] == ["Interview Completed"]


def test_sink_failure_is_logged_not_raised(slots, bookings, directory, caplog):
    booking = _booking(slots, bookings)
    dispatcher = NotificationDispatcher(sink=BrokenSink(), email=MockEmailTransport(), directory=directory)

    with caplog.at_level(logging.WARNING):
        dispatcher.dispatch([BookingEvent(type=EventType.created, booking=booking, actor="candidate")])

    assert "Notification delivery failed" in caplog.text


def test_email_failures_do_not_escape(invitations, directory, caplog):
    issued = invitations.handle_application_status(
        EMPLOYER,
        ApplicationStatusChange(application_id="app-1", candidate_id="cand-a", job_id="job-1", new_status="assessment"),
        now=NOW,
    )
    for transport in (BrokenEmail(), RejectingEmail()):
        dispatcher = NotificationDispatcher(sink=MemoryNotificationSink(), email=transport, directory=directory)
        with caplog.at_level(logging.WARNING):
            dispatcher.dispatch(issued.events)
    assert caplog.text.count("Email delivery failed") == 2


def test_invitation_email_carries_scheduling_link(invitations, directory):
    issued = invitations.handle_application_status(
        EMPLOYER,
        ApplicationStatusChange(application_id="app-1", candidate_id="cand-a", job_id="job-1", new_status="assessment"),
        now=NOW,
    )
    email = MockEmailTransport()
    sink = MemoryNotificationSink()
    dispatcher = NotificationDispatcher(
        sink=sink, email=email, directory=directory, frontend_base_url="https://jobs.example.com/"
    )

    dispatcher.dispatch(issued.events)

    assert len(email.sent) == 1
    message = email.sent[0]
    assert message.to == "ana@example.com"
    assert message.subject == "Interview Invitation - Backend Engineer at Acme Corp"
    assert f"https://jobs.example.com/interview/schedule/{issued.invitation.token}" in message.html
    # invitations go out by email only
    assert sink.for_recipient("cand-a") == []


def test_scheduling_from_invitation_sends_confirmation(invitations, slots, directory):
    real = make_slot(slots, date(2025, 3, 5), "09:00", "09:30")
    issued = invitations.handle_application_status(
        EMPLOYER,
        ApplicationStatusChange(application_id="app-1", candidate_id="cand-a", job_id="job-1", new_status="assessment"),
        now=NOW,
    )
    result = invitations.schedule(issued.invitation.token, real.id, now=NOW)
    email = MockEmailTransport()
    sink = MemoryNotificationSink()

    NotificationDispatcher(sink=sink, email=email, directory=directory).dispatch(result.events)

    assert [m.subject for m in email.sent] == ["Interview Confirmed - Backend Engineer at Acme Corp"]
    assert [n.title for n in sink.for_recipient("emp-1")] == ["Interview Booked"]


def test_reminders_send_tightest_lead_once(slots, bookings, slot_store, booking_store):
    booking = _booking(slots, bookings)
    reminders = ReminderUseCase(bookings=booking_store, slots=slot_store)
    start = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

    assert reminders.run(now=start - timedelta(hours=30)) == []

    events = reminders.run(now=start - timedelta(minutes=50))
    assert [(e.booking.id, e.reminder_lead) for e in events] == [(booking.id, "1h")]
    flags = booking_store.get(booking.id).reminders
    for audience in ("candidate", "employer"):
        assert flags.is_sent(audience, "24h")
        assert flags.is_sent(audience, "1h")
        assert not flags.is_sent(audience, "15m")

    assert reminders.run(now=start - timedelta(minutes=40)) == []

    events = reminders.run(now=start - timedelta(minutes=10))
    assert [e.reminder_lead for e in events] == ["15m"]
    assert reminders.run(now=start + timedelta(minutes=1)) == []


def test_reminders_skip_cancelled_and_placeholder_bookings(slots, bookings, invitations, slot_store, booking_store):
    booking = _booking(slots, bookings)
    bookings.cancel(CANDIDATE_A, booking.id, now=NOW)
    invitations.handle_application_status(
        EMPLOYER,
        ApplicationStatusChange(application_id="app-9", candidate_id="cand-b", job_id="job-1", new_status="assessment"),
        now=NOW,
    )
    reminders = ReminderUseCase(bookings=booking_store, slots=slot_store)
    assert reminders.run(now=datetime(2025, 3, 7, 12, 0, tzinfo=timezone.utc)) == []


class CancelAfterListing(MemoryBookingStore):
    """Runs ``on_list`` right after the active bookings are listed."""

    on_list = None

    def list_active(self):
        listed = super().list_active()
        if self.on_list is not None:
            self.on_list()
        return listed


def test_reminder_run_does_not_revive_cancelled_booking(slots, slot_store, directory):
    store = CancelAfterListing()
    bookings = BookingUseCase(slots=slot_store, bookings=store, directory=directory)
    slot = make_slot(slots, date(2025, 3, 10), "09:00", "09:30")
    booking = book(bookings, CANDIDATE_A, slot.id).booking
    start = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
    store.on_list = lambda: bookings.cancel(EMPLOYER, booking.id, reason="role filled", now=start - timedelta(hours=2))

    events = ReminderUseCase(bookings=store, slots=slot_store).run(now=start - timedelta(minutes=50))

    assert events == []
    stored = store.get(booking.id)
    assert stored.status is BookingStatus.cancelled_by_employer
    assert not stored.reminders.is_sent("candidate", "1h")
    assert slot_store.get(slot.id).current_bookings == 0


def test_email_html_escapes_user_supplied_text(invitations, slots, directory):
    directory.add_candidate(
        CandidateProfile(id="cand-x", email="x@example.com", first_name="<script>alert(1)</script>")
    )
    real = make_slot(
        slots,
        date(2025, 3, 5),
        "09:00",
        "09:30",
        meeting_type="in_person",
        meeting_details=MeetingDetails(location="Main & 5th", instructions='Ask for "Sam" <front desk>'),
    )
    issued = invitations.handle_application_status(
        EMPLOYER,
        ApplicationStatusChange(application_id="app-x", candidate_id="cand-x", job_id="job-1", new_status="assessment"),
        now=NOW,
    )
    scheduled = invitations.schedule(issued.invitation.token, real.id, now=NOW)
    email = MockEmailTransport()
    dispatcher = NotificationDispatcher(sink=MemoryNotificationSink(), email=email, directory=directory)

    dispatcher.dispatch(issued.events + scheduled.events)

    invitation_html, confirmation_html = (m.html for m in email.sent)
    assert "<script>" not in invitation_html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in invitation_html
    assert "<script>" not in confirmation_html
    assert "Main &amp; 5th" in confirmation_html
    assert "Ask for &quot;Sam&quot; &lt;front desk&gt;" in confirmation_html
