from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import Recurrence, SlotChanges, SlotSpec
from interview_scheduler.application.exceptions import (
    AuthorizationError,
    EmployerNotFoundError,
    SlotConflictError,
    SlotInUseError,
    SlotNotFoundError,
    ValidationError,
)
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.utils.date_utils import minutes_between, normalize_hhmm, utcnow
from interview_scheduler.domain.entities.slot import MEETING_TYPES, Slot


MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 480
MAX_BUFFER_MINUTES = 60


class SlotManagementUseCase:
    def __init__(
        self,
        slots: SlotStorePort,
        directory: DirectoryPort,
        default_timezone: str = "America/New_York",
        default_duration_minutes: int = 60,
    ) -> None:
        self._slots = slots
        self._directory = directory
        self._default_timezone = default_timezone
        self._default_duration = default_duration_minutes
        self._logger = logging.getLogger(__name__)

    def create_slot(self, caller: Caller, spec: SlotSpec, now: datetime | None = None) -> list[Slot]:
        """
        Create a slot for the calling employer.
        Returns the created slots: the requested one first, then any recurring copies.
        """
        now = now or utcnow()
        employer_id = self._require_employer(caller)
        start_time = normalize_hhmm(spec.start_time, "start_time")
        end_time = normalize_hhmm(spec.end_time, "end_time")
        self._validate_window(start_time, end_time)
        self._validate_shape(spec.max_bookings, spec.meeting_type, spec.buffer_before, spec.buffer_after)

        duration = spec.duration_minutes or minutes_between(start_time, end_time) or self._default_duration
        if not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
            raise ValidationError(
                f"duration must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES} minutes"
            )

        slot = Slot(
            id=str(uuid.uuid4()),
            employer_id=employer_id,
            title=(spec.title or "Interview Slot").strip(),
            date=spec.date,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration,
            timezone=spec.timezone or self._default_timezone,
            max_bookings=spec.max_bookings,
            meeting_type=spec.meeting_type,
            meeting_details=spec.meeting_details,
            buffer_before=spec.buffer_before,
            buffer_after=spec.buffer_after,
            created_at=now,
            updated_at=now,
        )

        existing = self._slots.list_for_employer(employer_id, spec.date, spec.date)
        conflicting = [s for s in existing if s.is_available and s.conflicts_with(slot)]
        if conflicting:
            raise SlotConflictError(
                "Time slot conflicts with existing availability: "
                + ", ".join(f"{s.start_time}-{s.end_time}" for s in conflicting)
            )

        created = [self._slots.add(slot)]
        if spec.recurrence is not None:
            created.extend(self._create_recurring(slot, spec.recurrence, now))

        self._logger.info(
            "Slots created",
            extra={"employer_id": employer_id, "slot_id": slot.id, "status": f"count={len(created)}"},
        )
        return created

    def update_slot(self, caller: Caller, slot_id: str, changes: SlotChanges, now: datetime | None = None) -> Slot:
        now = now or utcnow()
        slot = self._get_owned(caller, slot_id)

        if slot.current_bookings > 0 and changes.moves_time:
            raise SlotInUseError("Cannot modify date/time of slot with existing bookings")

        start_time = normalize_hhmm(changes.start_time, "start_time") if changes.start_time else slot.start_time
        end_time = normalize_hhmm(changes.end_time, "end_time") if changes.end_time else slot.end_time
        self._validate_window(start_time, end_time)

        max_bookings = changes.max_bookings if changes.max_bookings is not None else slot.max_bookings
        if max_bookings < slot.current_bookings:
            raise ValidationError("max_bookings cannot be lower than the current number of bookings")

        updated = replace(
            slot,
            date=changes.date or slot.date,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=minutes_between(start_time, end_time) if changes.moves_time else slot.duration_minutes,
            title=changes.title if changes.title is not None else slot.title,
            timezone=changes.timezone or slot.timezone,
            max_bookings=max_bookings,
            is_available=changes.is_available if changes.is_available is not None else slot.is_available,
            meeting_type=changes.meeting_type or slot.meeting_type,
            meeting_details=changes.meeting_details or slot.meeting_details,
            buffer_before=changes.buffer_before if changes.buffer_before is not None else slot.buffer_before,
            buffer_after=changes.buffer_after if changes.buffer_after is not None else slot.buffer_after,
            updated_at=now,
        )
        self._validate_shape(updated.max_bookings, updated.meeting_type, updated.buffer_before, updated.buffer_after)

        if changes.moves_time:
            others = self._slots.list_for_employer(slot.employer_id, updated.date, updated.date)
            if any(s.id != slot.id and s.is_available and s.conflicts_with(updated) for s in others):
                raise SlotConflictError("Time slot conflicts with existing availability")

        return self._slots.update(updated)

    def delete_slot(self, caller: Caller, slot_id: str) -> None:
        slot = self._get_owned(caller, slot_id)
        if slot.current_bookings > 0:
            raise SlotInUseError("Cannot delete slot with existing bookings. Cancel bookings first.")
        self._slots.delete(slot_id)
        self._logger.info("Slot deleted", extra={"slot_id": slot_id, "employer_id": slot.employer_id})

    def toggle_slot(self, caller: Caller, slot_id: str, now: datetime | None = None) -> Slot:
        slot = self._get_owned(caller, slot_id)
        return self._slots.update(replace(slot, is_available=not slot.is_available, updated_at=now or utcnow()))

    def _create_recurring(self, origin: Slot, recurrence: Recurrence, now: datetime) -> list[Slot]:
        if recurrence.frequency not in ("daily", "weekly", "monthly"):
            raise ValidationError("recurrence frequency must be daily, weekly or monthly")
        if recurrence.until < origin.date:
            raise ValidationError("recurrence end date must not be before the slot date")

        weekdays = set(recurrence.days_of_week) or {origin.date.weekday()}
        existing = self._slots.list_for_employer(origin.employer_id, origin.date, recurrence.until)
        created: list[Slot] = []

        current = origin.date + timedelta(days=1)
        while current <= recurrence.until:
            if _recurs_on(current, origin.date, recurrence.frequency, weekdays):
                copy = replace(origin, id=str(uuid.uuid4()), date=current, created_at=now, updated_at=now)
                if any(s.is_available and s.conflicts_with(copy) for s in existing):
                    self._logger.info("Skipping conflicting recurring slot", extra={"slot_id": copy.id})
                else:
                    created.append(self._slots.add(copy))
            current += timedelta(days=1)
        return created

    def _require_employer(self, caller: Caller) -> str:
        if not caller.is_employer:
            raise AuthorizationError("Only employers can manage availability")
        if self._directory.get_employer(caller.user_id) is None:
            raise EmployerNotFoundError("Employer profile not found")
        return caller.user_id

    def _get_owned(self, caller: Caller, slot_id: str) -> Slot:
        slot = self._slots.get(slot_id)
        if slot is None:
            raise SlotNotFoundError("Availability slot not found")
        if not caller.is_employer or slot.employer_id != caller.user_id:
            raise AuthorizationError("Availability slot belongs to another employer")
        return slot

    @staticmethod
    def _validate_window(start_time: str, end_time: str) -> None:
        if start_time >= end_time:
            raise ValidationError("Start time must be before end time")

    @staticmethod
    def _validate_shape(max_bookings: int, meeting_type: str, buffer_before: int, buffer_after: int) -> None:
        if max_bookings < 1:
            raise ValidationError("max_bookings must be at least 1")
        if meeting_type not in MEETING_TYPES:
            raise ValidationError(f"meeting_type must be one of {', '.join(MEETING_TYPES)}")
        for value in (buffer_before, buffer_after):
            if not 0 <= value <= MAX_BUFFER_MINUTES:
                raise ValidationError(f"buffer time must be between 0 and {MAX_BUFFER_MINUTES} minutes")


def _recurs_on(day: date, origin: date, frequency: str, weekdays: set[int]) -> bool:
    if frequency == "daily":
        return True
    if frequency == "weekly":
        return day.weekday() in weekdays
    return day.day == origin.day
