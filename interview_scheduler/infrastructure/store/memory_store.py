from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date

from interview_scheduler.application.exceptions import DuplicateBookingError
from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.invitation_store import InvitationStorePort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.domain.entities.booking import Booking
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.slot import Slot
from interview_scheduler.domain.transitions import ACTIVE_STATUSES, same_live_job


class MemorySlotStore(SlotStorePort):
    def __init__(self) -> None:
        self._slots: dict[str, Slot] = {}
        self._lock = threading.Lock()

    def add(self, slot: Slot) -> Slot:
        with self._lock:
            self._slots[slot.id] = slot
        return slot

    def get(self, slot_id: str) -> Slot | None:
        return self._slots.get(slot_id)

    def update(self, slot: Slot) -> Slot:
        with self._lock:
            if slot.id not in self._slots:
                raise KeyError(slot.id)
            # capacity counters are owned by try_reserve/release
            current = self._slots[slot.id]
            slot = replace(slot, current_bookings=current.current_bookings)
            self._slots[slot.id] = slot
        return slot

    def delete(self, slot_id: str) -> bool:
        with self._lock:
            return self._slots.pop(slot_id, None) is not None

    def list_for_employer(
        self,
        employer_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Slot]:
        slots = [
            s
            for s in list(self._slots.values())
            if s.employer_id == employer_id
            and (start is None or s.date >= start)
            and (end is None or s.date <= end)
        ]
        return sorted(slots, key=lambda s: (s.date, s.start_time))

    def try_reserve(self, slot_id: str) -> Slot | None:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or not slot.is_open:
                return None
            slot = replace(slot, current_bookings=slot.current_bookings + 1)
            self._slots[slot_id] = slot
            return slot

    def release(self, slot_id: str) -> Slot | None:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None:
                return None
            slot = replace(slot, current_bookings=max(0, slot.current_bookings - 1))
            self._slots[slot_id] = slot
            return slot


class MemoryBookingStore(BookingStorePort):
    def __init__(self) -> None:
        self._bookings: dict[str, Booking] = {}
        self._by_token: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.booking_token in self._by_token:
                raise ValueError("Duplicate booking token")
            if any(same_live_job(existing, booking) for existing in self._bookings.values()):
                raise DuplicateBookingError("Candidate already has a scheduled interview for this job")
            self._bookings[booking.id] = booking
            self._by_token[booking.booking_token] = booking.id
        return booking

    def get(self, booking_id: str) -> Booking | None:
        return self._bookings.get(booking_id)

    def get_by_token(self, token: str) -> Booking | None:
        booking_id = self._by_token.get(token)
        return self._bookings.get(booking_id) if booking_id else None

    def replace_if_unchanged(self, current: Booking, updated: Booking) -> Booking | None:
        with self._lock:
            if self._bookings.get(current.id) != current:
                return None
            self._bookings[current.id] = updated
        return updated

    def list_for_employer(self, employer_id: str) -> list[Booking]:
        return self._select(lambda b: b.employer_id == employer_id)

    def list_for_candidate(self, candidate_id: str) -> list[Booking]:
        return self._select(lambda b: b.candidate_id == candidate_id)

    def list_for_application(self, application_id: str) -> list[Booking]:
        return self._select(lambda b: b.application_id == application_id)

    def list_active(self) -> list[Booking]:
        return self._select(lambda b: b.status in ACTIVE_STATUSES)

    def _select(self, predicate) -> list[Booking]:
        bookings = [b for b in list(self._bookings.values()) if predicate(b)]
        return sorted(bookings, key=lambda b: (b.scheduled_date, b.scheduled_time))


class MemoryInvitationStore(InvitationStorePort):
    def __init__(self) -> None:
        self._invitations: dict[str, Invitation] = {}
        self._lock = threading.Lock()

    def add(self, invitation: Invitation) -> Invitation:
        with self._lock:
            if invitation.token in self._invitations:
                raise ValueError("Duplicate invitation token")
            self._invitations[invitation.token] = invitation
        return invitation

    def get_by_token(self, token: str) -> Invitation | None:
        return self._invitations.get(token)

    def replace_if_unchanged(self, current: Invitation, updated: Invitation) -> Invitation | None:
        with self._lock:
            if self._invitations.get(current.token) != current:
                return None
            self._invitations[current.token] = updated
        return updated

    def list_for_application(self, application_id: str) -> list[Invitation]:
        return [i for i in list(self._invitations.values()) if i.application_id == application_id]
