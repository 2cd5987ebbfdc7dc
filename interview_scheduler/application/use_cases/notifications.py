from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from html import escape
from typing import Iterable

from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.email_transport import EmailMessage, EmailTransportPort
from interview_scheduler.application.ports.notification_sink import NotificationSinkPort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.utils.date_utils import utcnow
from interview_scheduler.domain.entities.booking import AUDIENCES, REMINDER_LEADS, Booking
from interview_scheduler.domain.entities.event import BookingEvent, EventType
from interview_scheduler.domain.entities.notification import Notification


LEAD_WINDOWS = {
    "24h": timedelta(hours=24),
    "1h": timedelta(hours=1),
    "15m": timedelta(minutes=15),
}


def format_day(day: date) -> str:
    return f"{day:%A, %B} {day.day}, {day.year}"


def compose(event: BookingEvent) -> list[Notification]:
    """
    Turn a booking event into per-recipient notifications.

    Pure: reads only the event. The candidate gets the booking's candidate id,
    the employer gets its employer id.
    """
    booking = event.booking
    when = format_day(booking.scheduled_date)
    at = booking.scheduled_time
    candidate_name = booking.candidate.name or "A candidate"

    if event.type is EventType.created:
        return [
            Notification(
                recipient_id=booking.candidate_id,
                title="Interview Scheduled",
                message=(
                    f"Your interview has been scheduled for {when} at {at}. "
                    "Please check your interview details for meeting information."
                ),
                severity="success",
            ),
            Notification(
                recipient_id=booking.employer_id,
                title="Interview Booked",
                message=f"{candidate_name} has booked an interview for {when} at {at}. Please prepare for the interview.",
            ),
        ]

    if event.type is EventType.cancelled:
        reason = event.reason or "No reason provided"
        if event.actor == "candidate":
            return [
                Notification(
                    recipient_id=booking.employer_id,
                    title="Interview Cancelled",
                    message=(
                        f"{booking.candidate.name or 'The candidate'} has cancelled the interview "
                        f"scheduled for {when} at {at}. Reason: {reason}"
                    ),
                    severity="warning",
                )
            ]
        return [
            Notification(
                recipient_id=booking.candidate_id,
                title="Interview Cancelled",
                message=(
                    f"Your interview scheduled for {when} at {at} has been cancelled by the employer. "
                    f"Reason: {reason}"
                ),
                severity="warning",
            )
        ]

    if event.type is EventType.rescheduled:
        if event.actor == "candidate":
            return [
                Notification(
                    recipient_id=booking.employer_id,
                    title="Interview Rescheduled",
                    message=f"{booking.candidate.name or 'The candidate'} has rescheduled the interview to {when} at {at}.",
                )
            ]
        return [
            Notification(
                recipient_id=booking.candidate_id,
                title="Interview Rescheduled",
                message=f"Your interview has been rescheduled to {when} at {at}.",
            )
        ]

    if event.type is EventType.reminder:
        if event.reminder_lead == "24h":
            text = f"Reminder: You have an interview tomorrow ({when}) at {at}."
        elif event.reminder_lead == "1h":
            text = f"Reminder: Your interview starts in 1 hour at {at}."
        elif event.reminder_lead == "15m":
            text = f"Reminder: Your interview starts in 15 minutes at {at}."
        else:
            text = f"Reminder: You have an upcoming interview on {when} at {at}."
        return [
            Notification(recipient_id=booking.candidate_id, title="Interview Reminder", message=text),
            Notification(
                recipient_id=booking.employer_id,
                title="Interview Reminder",
                message=f"Reminder: You have an interview with {candidate_name} on {when} at {at}.",
            ),
        ]

    if event.type is EventType.completed:
        return [
            Notification(
                recipient_id=booking.candidate_id,
                title="Interview Completed",
                message="Thank you for completing your interview. We will get back to you with feedback soon.",
                severity="success",
            )
        ]

    # invitations are delivered by email only
    return []


class NotificationDispatcher:
    """Delivers events to the notification sink and email transport. Never raises."""

    def __init__(
        self,
        sink: NotificationSinkPort,
        email: EmailTransportPort,
        directory: DirectoryPort,
        frontend_base_url: str = "http://localhost:3000",
    ) -> None:
        self._sink = sink
        self._email = email
        self._directory = directory
        self._frontend_base_url = frontend_base_url.rstrip("/")
        self._logger = logging.getLogger(__name__)

    def dispatch(self, events: Iterable[BookingEvent]) -> None:
        for event in events:
            for notification in self._compose_safely(event):
                try:
                    self._sink.send(
                        notification.recipient_id,
                        notification.title,
                        notification.message,
                        notification.severity,
                    )
                except Exception as e:
                    self._logger.warning(
                        "Notification delivery failed",
                        extra={"booking_id": event.booking.id, "event": event.type.value, "error": str(e)},
                    )

            if event.invitation is not None:
                self._send_email(event)

    def scheduling_link(self, token: str) -> str:
        return f"{self._frontend_base_url}/interview/schedule/{token}"

    def _compose_safely(self, event: BookingEvent) -> list[Notification]:
        try:
            return compose(event)
        except Exception as e:
            self._logger.warning(
                "Notification composition failed",
                extra={"booking_id": event.booking.id, "event": event.type.value, "error": str(e)},
            )
            return []

    def _send_email(self, event: BookingEvent) -> None:
        try:
            if event.type is EventType.invitation_issued:
                message = self._invitation_email(event)
            else:
                message = self._confirmation_email(event)
            result = self._email.send_email(message)
        except Exception as e:
            self._logger.warning(
                "Email delivery failed",
                extra={"booking_id": event.booking.id, "event": event.type.value, "error": str(e)},
            )
            return
        if not result.success:
            self._logger.warning(
                "Email delivery failed",
                extra={"booking_id": event.booking.id, "event": event.type.value, "error": result.error},
            )

    def _names(self, booking: Booking) -> tuple[str, str, str]:
        job = self._directory.get_job(booking.job_id)
        employer = self._directory.get_employer(booking.employer_id)
        job_title = job.title if job else "the position"
        location = (job.location if job else None) or ""
        company = employer.company_name if employer else "the hiring team"
        return job_title, company, location

    def _invitation_email(self, event: BookingEvent) -> EmailMessage:
        booking, invitation = event.booking, event.invitation
        job_title, company, location = self._names(booking)
        link = self.scheduling_link(invitation.token)
        expires = invitation.expires_at.date().isoformat()
        name, title, org, place, href = (
            escape(v) for v in (booking.candidate.name, job_title, company, location, link)
        )
        html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Interview Invitation</h2>
  <p>Dear {name},</p>
  <p>Congratulations! You have been invited to schedule an interview for the position:</p>
  <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px;">
    <h3 style="margin: 0;">{title}</h3>
    <p style="margin: 5px 0;">{org}</p>
    <p style="margin: 5px 0;">{place}</p>
  </div>
  <p>Please click the link below to select your preferred interview time slot:</p>
  <p style="text-align: center;"><a href="{href}">Schedule Interview</a></p>
  <ul>
    <li>This link expires on {expires}</li>
    <li>Please book your slot as soon as possible</li>
    <li>You will receive confirmation details once you select a time</li>
  </ul>
  <p>Best regards,<br>{org} Recruitment Team</p>
</div>
"""
        text = (
            f"You have been invited to schedule an interview for {job_title} at {company}. "
            f"Choose a time here: {link} (expires {expires})."
        )
        return EmailMessage(
            to=invitation.candidate_email,
            subject=f"Interview Invitation - {job_title} at {company}",
            html=html,
            text=text,
        )

    def _confirmation_email(self, event: BookingEvent) -> EmailMessage:
        booking = event.booking
        job_title, company, _ = self._names(booking)
        details = booking.meeting.details
        lines = [
            f"<p><strong>Position:</strong> {escape(job_title)}</p>",
            f"<p><strong>Company:</strong> {escape(company)}</p>",
            f"<p><strong>Date:</strong> {format_day(booking.scheduled_date)}</p>",
            f"<p><strong>Time:</strong> {booking.scheduled_time} ({escape(booking.timezone)})</p>",
            f"<p><strong>Duration:</strong> {booking.duration_minutes} minutes</p>",
            f"<p><strong>Type:</strong> {escape(booking.meeting.type)}</p>",
        ]
        if details.video_link:
            video = escape(details.video_link)
            lines.append(f'<p><strong>Video Link:</strong> <a href="{video}">{video}</a></p>')
        if details.phone_number:
            lines.append(f"<p><strong>Phone:</strong> {escape(details.phone_number)}</p>")
        if details.location:
            lines.append(f"<p><strong>Location:</strong> {escape(details.location)}</p>")
        if details.instructions:
            lines.append(f"<p><strong>Instructions:</strong> {escape(details.instructions)}</p>")

        html = (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            "<h2>Interview Confirmed!</h2>"
            f"<p>Dear {escape(booking.candidate.name)},</p>"
            "<p>Your interview has been successfully scheduled!</p>"
            + "".join(lines)
            + "<p>We look forward to speaking with you!</p>"
            f"<p>Best regards,<br>{escape(company)} Recruitment Team</p></div>"
        )
        return EmailMessage(
            to=booking.candidate.email,
            subject=f"Interview Confirmed - {job_title} at {company}",
            html=html,
        )


class ReminderUseCase:
    def __init__(self, bookings: BookingStorePort, slots: SlotStorePort) -> None:
        self._bookings = bookings
        self._slots = slots
        self._logger = logging.getLogger(__name__)

    def run(self, now: datetime | None = None) -> list[BookingEvent]:
        """
        Emit at most one reminder per active booking: the tightest lead window
        already reached and not yet sent. Wider windows are marked sent with it.
        """
        now = now or utcnow()
        events: list[BookingEvent] = []

        for booking in self._bookings.list_active():
            remaining = booking.scheduled_at - now
            if remaining <= timedelta(0):
                continue
            reached = [lead for lead in REMINDER_LEADS if remaining <= LEAD_WINDOWS[lead]]
            if not reached:
                continue
            tightest = min(reached, key=lambda lead: LEAD_WINDOWS[lead])
            if all(booking.reminders.is_sent(audience, tightest) for audience in AUDIENCES):
                continue
            slot = self._slots.get(booking.slot_id)
            if slot is not None and slot.is_placeholder:
                continue

            flags = booking.reminders
            for lead in reached:
                for audience in AUDIENCES:
                    flags = flags.mark(audience, lead)
            updated = self._bookings.replace_if_unchanged(booking, replace(booking, reminders=flags, updated_at=now))
            if updated is None:
                # changed since listed; the next run sees the fresh state
                self._logger.info("Reminder skipped, booking changed", extra={"booking_id": booking.id})
                continue
            events.append(
                BookingEvent(type=EventType.reminder, booking=updated, reminder_lead=tightest)
            )

        if events:
            self._logger.info("Reminders due", extra={"event": "reminder", "status": f"count={len(events)}"})
        return events
