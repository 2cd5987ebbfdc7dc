from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


MEETING_TYPES = ("video", "phone", "in_person")


@dataclass(frozen=True)
class MeetingDetails:
    location: str | None = None
    video_link: str | None = None
    phone_number: str | None = None
    instructions: str | None = None


@dataclass(frozen=True)
class Slot:
    id: str
    employer_id: str
    date: date
    start_time: str  # "HH:MM", 24h
    end_time: str  # "HH:MM", 24h
    title: str = "Interview Slot"
    duration_minutes: int = 60
    timezone: str = "America/New_York"
    max_bookings: int = 1
    current_bookings: int = 0
    is_available: bool = True
    meeting_type: str = "video"
    meeting_details: MeetingDetails = field(default_factory=MeetingDetails)
    buffer_before: int = 0
    buffer_after: int = 0
    is_placeholder: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.is_available and self.current_bookings < self.max_bookings

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_bookings - self.current_bookings)

    @property
    def starts_at(self) -> datetime:
        return combine_local(self.date, self.start_time, self.timezone)

    @property
    def ends_at(self) -> datetime:
        return combine_local(self.date, self.end_time, self.timezone)

    def conflicts_with(self, other: "Slot") -> bool:
        if self.date != other.date:
            return False
        return self.start_time < other.end_time and self.end_time > other.start_time


def parse_hhmm(value: str) -> time:
    hour, minute = value.split(":", 1)
    return time(int(hour), int(minute))


def zone_for(timezone: str) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def combine_local(day: date, hhmm: str, timezone: str) -> datetime:
    """Combine a calendar day and a wall-clock time in the given zone."""
    return datetime.combine(day, parse_hhmm(hhmm), tzinfo=zone_for(timezone))


def local_date(moment: datetime, timezone: str) -> date:
    return moment.astimezone(zone_for(timezone)).date()
