from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.exceptions import AuthorizationError, EmployerNotFoundError, ValidationError
from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.application.ports.slot_store import SlotStorePort
from interview_scheduler.application.utils.date_utils import month_range, utcnow
from interview_scheduler.domain.entities.slot import Slot, local_date


VIEWS = ("employer", "candidate")


@dataclass(frozen=True)
class SlotAvailability:
    slot: Slot
    is_open: bool
    remaining: int


@dataclass(frozen=True)
class AvailabilityResult:
    employer_id: str
    start: date
    end: date
    view: str
    slots: list[SlotAvailability] = field(default_factory=list)

    @property
    def by_day(self) -> dict[str, list[SlotAvailability]]:
        """Slots grouped by their stored calendar day (ISO date key)."""
        grouped: dict[str, list[SlotAvailability]] = {}
        for item in self.slots:
            grouped.setdefault(item.slot.date.isoformat(), []).append(item)
        return grouped


class AvailabilityQueryUseCase:
    def __init__(
        self,
        slots: SlotStorePort,
        directory: DirectoryPort,
        default_timezone: str = "America/New_York",
    ) -> None:
        self._slots = slots
        self._directory = directory
        self._default_timezone = default_timezone

    def execute(
        self,
        employer_id: str,
        month: str | None = None,
        start: date | None = None,
        end: date | None = None,
        view: str = "candidate",
        now: datetime | None = None,
        caller: Caller | None = None,
    ) -> AvailabilityResult:
        """
        List an employer's slots for a month or an explicit date range.

        The employer view returns every slot with its true state. The candidate
        view keeps only slots that can be booked right now, so a fully booked day
        looks the same as a day without availability. Only the employer itself
        (or an admin) may see the employer view.
        """
        now = now or utcnow()
        if view not in VIEWS:
            raise ValidationError(f"view must be one of {', '.join(VIEWS)}")
        if not employer_id:
            raise ValidationError("Employer ID is required")
        if self._directory.get_employer(employer_id) is None:
            raise EmployerNotFoundError("Employer profile not found")
        if view == "employer" and not _owns_calendar(caller, employer_id):
            raise AuthorizationError("Only the employer can see its full calendar")

        if start is not None and end is not None:
            if start > end:
                raise ValidationError("start must not be after end")
            range_start, range_end = start, end
        else:
            range_start, range_end = month_range(month, local_date(now, self._default_timezone))

        slots = self._slots.list_for_employer(employer_id, range_start, range_end)
        if view == "candidate":
            slots = [s for s in slots if s.is_open and not s.is_placeholder and s.starts_at > now]

        return AvailabilityResult(
            employer_id=employer_id,
            start=range_start,
            end=range_end,
            view=view,
            slots=[SlotAvailability(slot=s, is_open=s.is_open, remaining=s.remaining_capacity) for s in slots],
        )


def _owns_calendar(caller: Caller | None, employer_id: str) -> bool:
    if caller is None:
        return False
    return caller.is_admin or (caller.is_employer and caller.user_id == employer_id)
