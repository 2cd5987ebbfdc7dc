from __future__ import annotations

import threading
from datetime import date, datetime, timezone

import pytest

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import BookingRequest, SlotSpec
from interview_scheduler.application.use_cases.availability import AvailabilityQueryUseCase
from interview_scheduler.application.use_cases.bookings import BookingUseCase
from interview_scheduler.application.use_cases.invitations import InvitationUseCase
from interview_scheduler.application.use_cases.slots import SlotManagementUseCase
from interview_scheduler.domain.entities.profile import CandidateProfile, EmployerProfile, JobProfile
from interview_scheduler.infrastructure.directory.memory_directory import MemoryDirectory
from interview_scheduler.infrastructure.store.memory_store import (
    MemoryBookingStore,
    MemoryInvitationStore,
    MemorySlotStore,
)


class ReadGate:
    """Holds the next ``parties`` reads until every one of them has been made."""

    def __init__(self) -> None:
        self._barrier: threading.Barrier | None = None
        self._remaining = 0
        self._lock = threading.Lock()

    def hold(self, parties: int) -> None:
        with self._lock:
            self._barrier = threading.Barrier(parties)
            self._remaining = parties

    def pass_through(self) -> None:
        with self._lock:
            barrier = self._barrier if self._remaining > 0 else None
            if barrier is not None:
                self._remaining -= 1
        if barrier is not None:
            barrier.wait(timeout=5)


class GatedBookingStore(MemoryBookingStore):
    def __init__(self) -> None:
        super().__init__()
        self.gate = ReadGate()

    def get(self, booking_id):
        booking = super().get(booking_id)
        self.gate.pass_through()
        return booking

    def list_for_candidate(self, candidate_id):
        listed = super().list_for_candidate(candidate_id)
        self.gate.pass_through()
        return listed


class GatedInvitationStore(MemoryInvitationStore):
    def __init__(self) -> None:
        super().__init__()
        self.gate = ReadGate()

    def get_by_token(self, token):
        invitation = super().get_by_token(token)
        self.gate.pass_through()
        return invitation


def run_together(*calls):
    """Run each call on its own thread; return results or raised exceptions in call order."""
    outcomes: list = [None] * len(calls)

    def runner(index, call):
        try:
            outcomes[index] = call()
        except Exception as e:
            outcomes[index] = e

    threads = [threading.Thread(target=runner, args=(i, call)) for i, call in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

EMPLOYER = Caller(user_id="emp-1", role="employer")
OTHER_EMPLOYER = Caller(user_id="emp-2", role="employer")
CANDIDATE_A = Caller(user_id="cand-a", role="candidate")
CANDIDATE_B = Caller(user_id="cand-b", role="candidate")


def seed_directory(extra_candidates: int = 0) -> MemoryDirectory:
    directory = MemoryDirectory()
    directory.add_employer(EmployerProfile(id="emp-1", company_name="Acme Corp", email="hr@acme.test"))
    directory.add_employer(EmployerProfile(id="emp-2", company_name="Globex", email="hr@globex.test"))
    directory.add_job(JobProfile(id="job-1", employer_id="emp-1", title="Backend Engineer", location="Remote"))
    directory.add_job(JobProfile(id="job-2", employer_id="emp-2", title="Designer"))
    directory.add_candidate(CandidateProfile(id="cand-a", email="ana@example.com", first_name="Ana", last_name="Lopez"))
    directory.add_candidate(CandidateProfile(id="cand-b", email="ben@example.com", first_name="Ben", last_name="Ode"))
    for i in range(extra_candidates):
        directory.add_candidate(CandidateProfile(id=f"cand-{i}", email=f"c{i}@example.com", first_name=f"C{i}"))
    return directory


@pytest.fixture
def directory() -> MemoryDirectory:
    return seed_directory(extra_candidates=10)


@pytest.fixture
def slot_store() -> MemorySlotStore:
    return MemorySlotStore()


@pytest.fixture
def booking_store() -> MemoryBookingStore:
    return MemoryBookingStore()


@pytest.fixture
def invitation_store() -> MemoryInvitationStore:
    return MemoryInvitationStore()


@pytest.fixture
def slots(slot_store, directory) -> SlotManagementUseCase:
    return SlotManagementUseCase(slots=slot_store, directory=directory, default_timezone="UTC")


@pytest.fixture
def availability(slot_store, directory) -> AvailabilityQueryUseCase:
    return AvailabilityQueryUseCase(slots=slot_store, directory=directory, default_timezone="UTC")


@pytest.fixture
def bookings(slot_store, booking_store, directory) -> BookingUseCase:
    return BookingUseCase(slots=slot_store, bookings=booking_store, directory=directory)


@pytest.fixture
def invitations(slot_store, booking_store, invitation_store, directory) -> InvitationUseCase:
    return InvitationUseCase(
        slots=slot_store,
        bookings=booking_store,
        invitations=invitation_store,
        directory=directory,
        default_timezone="UTC",
    )


def make_slot(slots: SlotManagementUseCase, day: date, start: str, end: str, capacity: int = 1, **kwargs):
    spec = SlotSpec(date=day, start_time=start, end_time=end, max_bookings=capacity, timezone="UTC", **kwargs)
    return slots.create_slot(EMPLOYER, spec, now=NOW)[0]


def book(bookings: BookingUseCase, caller: Caller, slot_id: str, job_id: str = "job-1", now: datetime = NOW):
    return bookings.create_booking(caller, BookingRequest(slot_id=slot_id, job_id=job_id), now=now)
