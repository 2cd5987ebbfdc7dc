from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from interview_scheduler.domain.entities.booking import Booking
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.slot import Slot


class EventType(str, Enum):
    created = "created"
    cancelled = "cancelled"
    rescheduled = "rescheduled"
    reminder = "reminder"
    completed = "completed"
    invitation_issued = "invitation_issued"


@dataclass(frozen=True)
class BookingEvent:
    type: EventType
    booking: Booking
    actor: str = "system"  # "candidate", "employer", "system"
    slot: Slot | None = None
    reason: str | None = None
    reminder_lead: str | None = None
    invitation: Invitation | None = None
