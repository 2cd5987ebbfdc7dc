"""
Booking status state machine.

All legality rules for status changes live in ``TRANSITIONS``. Side effects
that a transition implies (capacity release, timestamps, notice checks) are
described by ``TransitionRule`` so callers consult a single table.
"""

from __future__ import annotations

from dataclasses import dataclass

from interview_scheduler.domain.entities.booking import Booking, BookingStatus


S = BookingStatus


@dataclass(frozen=True)
class TransitionRule:
    releases_capacity: bool = False
    requires_notice: bool = False  # minimum lead time before the interview
    before_start_only: bool = False
    allowed_actors: tuple[str, ...] = ("employer",)


_CONFIRM = TransitionRule(before_start_only=True, allowed_actors=("employer", "candidate"))
_CANCEL_CANDIDATE = TransitionRule(releases_capacity=True, requires_notice=True, allowed_actors=("candidate",))
_CANCEL_EMPLOYER = TransitionRule(releases_capacity=True, requires_notice=True, allowed_actors=("employer",))
_RESCHEDULE = TransitionRule(requires_notice=True, allowed_actors=("employer", "candidate"))
_EMPLOYER_ONLY = TransitionRule()

_FROM_PENDING: dict[BookingStatus, TransitionRule] = {
    S.confirmed: _CONFIRM,
    S.cancelled_by_candidate: _CANCEL_CANDIDATE,
    S.cancelled_by_employer: _CANCEL_EMPLOYER,
    S.rescheduled: _RESCHEDULE,
    S.no_show_candidate: _EMPLOYER_ONLY,
    S.no_show_employer: _EMPLOYER_ONLY,
}

TRANSITIONS: dict[BookingStatus, dict[BookingStatus, TransitionRule]] = {
    S.scheduled: dict(_FROM_PENDING),
    # a rescheduled booking is pending again, on its new time
    S.rescheduled: dict(_FROM_PENDING),
    S.confirmed: {
        **{k: v for k, v in _FROM_PENDING.items() if k is not S.confirmed},
        S.in_progress: _EMPLOYER_ONLY,
    },
    S.in_progress: {S.completed: _EMPLOYER_ONLY},
    S.completed: {},
    S.cancelled_by_candidate: {},
    S.cancelled_by_employer: {},
    S.no_show_candidate: {},
    S.no_show_employer: {},
}

TERMINAL_STATUSES = frozenset(status for status, edges in TRANSITIONS.items() if not edges)
ACTIVE_STATUSES = frozenset({S.scheduled, S.confirmed, S.rescheduled})
CANCELLED_STATUSES = frozenset({S.cancelled_by_candidate, S.cancelled_by_employer})


def parse_status(value: str | BookingStatus) -> BookingStatus | None:
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(value).strip().lower())
    except ValueError:
        return None


def rule_for(current: BookingStatus, target: BookingStatus) -> TransitionRule | None:
    """Return the rule for ``current -> target`` or None if the edge does not exist."""
    return TRANSITIONS.get(current, {}).get(target)


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def same_live_job(existing: Booking, booking: Booking) -> bool:
    """True when both bookings are active and hold the same candidate for the same job."""
    return (
        existing.id != booking.id
        and existing.candidate_id == booking.candidate_id
        and existing.job_id == booking.job_id
        and existing.status in ACTIVE_STATUSES
        and booking.status in ACTIVE_STATUSES
    )
