from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from interview_scheduler.application.exceptions import DuplicateBookingError
from interview_scheduler.application.ports.booking_store import BookingStorePort
from interview_scheduler.application.ports.invitation_store import InvitationStorePort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.domain.entities.booking import Booking
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.slot import Slot
from interview_scheduler.domain.transitions import ACTIVE_STATUSES, same_live_job
from interview_scheduler.infrastructure.store.serializers import (
    deserialize_booking,
    deserialize_invitation,
    deserialize_slot,
    serialize_booking,
    serialize_invitation,
    serialize_slot,
)


T = TypeVar("T")

logger = logging.getLogger(__name__)


class JsonCollection(Generic[T]):
    """One JSON file holding a keyed collection of records."""

    def __init__(
        self,
        data_dir: str,
        name: str,
        serialize: Callable[[T], dict[str, Any]],
        deserialize: Callable[[dict[str, Any]], T],
    ) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._file_path = self._data_dir / f"{name}.json"
        self._serialize = serialize
        self._deserialize = deserialize
        self.lock = threading.RLock()

    def load(self) -> dict[str, T]:
        """Load all records, return empty if the file is missing."""
        if not self._file_path.exists():
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Corrupted collection file", extra={"error": str(e)})
            raise
        return {key: self._deserialize(value) for key, value in data.get("records", {}).items()}

    def save(self, records: dict[str, T]) -> None:
        """Save all records atomically."""
        temp_path = self._file_path.with_suffix(".json.tmp")
        payload = {
            "version": 1,
            "records": {key: self._serialize(value) for key, value in records.items()},
        }
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(self._file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise


class JsonSlotStore(SlotStorePort):
    def __init__(self, data_dir: str = "./data") -> None:
        self._collection = JsonCollection(data_dir, "slots", serialize_slot, deserialize_slot)

    def add(self, slot: Slot) -> Slot:
        with self._collection.lock:
            records = self._collection.load()
            records[slot.id] = slot
            self._collection.save(records)
        return slot

    def get(self, slot_id: str) -> Slot | None:
        with self._collection.lock:
            return self._collection.load().get(slot_id)

    def update(self, slot: Slot) -> Slot:
        with self._collection.lock:
            records = self._collection.load()
            current = records.get(slot.id)
            if current is None:
                raise KeyError(slot.id)
            slot = replace(slot, current_bookings=current.current_bookings)
            records[slot.id] = slot
            self._collection.save(records)
        return slot

    def delete(self, slot_id: str) -> bool:
        with self._collection.lock:
            records = self._collection.load()
            if records.pop(slot_id, None) is None:
                return False
            self._collection.save(records)
            return True

    def list_for_employer(
        self,
        employer_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Slot]:
        with self._collection.lock:
            records = self._collection.load()
        slots = [
            s
            for s in records.values()
            if s.employer_id == employer_id
            and (start is None or s.date >= start)
            and (end is None or s.date <= end)
        ]
        return sorted(slots, key=lambda s: (s.date, s.start_time))

    def try_reserve(self, slot_id: str) -> Slot | None:
        with self._collection.lock:
            records = self._collection.load()
            slot = records.get(slot_id)
            if slot is None or not slot.is_open:
                return None
            slot = replace(slot, current_bookings=slot.current_bookings + 1)
            records[slot_id] = slot
            self._collection.save(records)
            return slot

    def release(self, slot_id: str) -> Slot | None:
        with self._collection.lock:
            records = self._collection.load()
            slot = records.get(slot_id)
            if slot is None:
                return None
            slot = replace(slot, current_bookings=max(0, slot.current_bookings - 1))
            records[slot_id] = slot
            self._collection.save(records)
            return slot


class JsonBookingStore(BookingStorePort):
    def __init__(self, data_dir: str = "./data") -> None:
        self._collection = JsonCollection(data_dir, "bookings", serialize_booking, deserialize_booking)

    def add(self, booking: Booking) -> Booking:
        with self._collection.lock:
            records = self._collection.load()
            if any(b.booking_token == booking.booking_token for b in records.values()):
                raise ValueError("Duplicate booking token")
            if any(same_live_job(existing, booking) for existing in records.values()):
                raise DuplicateBookingError("Candidate already has a scheduled interview for this job")
            records[booking.id] = booking
            self._collection.save(records)
        return booking

    def get(self, booking_id: str) -> Booking | None:
        with self._collection.lock:
            return self._collection.load().get(booking_id)

    def get_by_token(self, token: str) -> Booking | None:
        for booking in self._all():
            if booking.booking_token == token:
                return booking
        return None

    def replace_if_unchanged(self, current: Booking, updated: Booking) -> Booking | None:
        with self._collection.lock:
            records = self._collection.load()
            if records.get(current.id) != current:
                return None
            records[current.id] = updated
            self._collection.save(records)
        return updated

    def list_for_employer(self, employer_id: str) -> list[Booking]:
        return [b for b in self._all() if b.employer_id == employer_id]

    def list_for_candidate(self, candidate_id: str) -> list[Booking]:
        return [b for b in self._all() if b.candidate_id == candidate_id]

    def list_for_application(self, application_id: str) -> list[Booking]:
        return [b for b in self._all() if b.application_id == application_id]

    def list_active(self) -> list[Booking]:
        return [b for b in self._all() if b.status in ACTIVE_STATUSES]

    def _all(self) -> list[Booking]:
        with self._collection.lock:
            records = self._collection.load()
        return sorted(records.values(), key=lambda b: (b.scheduled_date, b.scheduled_time))


class JsonInvitationStore(InvitationStorePort):
    def __init__(self, data_dir: str = "./data") -> None:
        self._collection = JsonCollection(data_dir, "invitations", serialize_invitation, deserialize_invitation)

    def add(self, invitation: Invitation) -> Invitation:
        with self._collection.lock:
            records = self._collection.load()
            if invitation.token in records:
                raise ValueError("Duplicate invitation token")
            records[invitation.token] = invitation
            self._collection.save(records)
        return invitation

    def get_by_token(self, token: str) -> Invitation | None:
        with self._collection.lock:
            return self._collection.load().get(token)

    def replace_if_unchanged(self, current: Invitation, updated: Invitation) -> Invitation | None:
        with self._collection.lock:
            records = self._collection.load()
            if records.get(current.token) != current:
                return None
            records[current.token] = updated
            self._collection.save(records)
        return updated

    def list_for_application(self, application_id: str) -> list[Invitation]:
        with self._collection.lock:
            records = self._collection.load()
        return [i for i in records.values() if i.application_id == application_id]
