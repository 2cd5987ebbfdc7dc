"""
Tests for durable slot, booking and invitation persistence.
"""

from __future__ import annotations

import json
import tempfile
import threading
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from interview_scheduler.application.dto.caller import Caller
from interview_scheduler.application.dto.commands import BookingRequest, FeedbackInput, SlotSpec
from interview_scheduler.application.exceptions import DuplicateBookingError
from interview_scheduler.application.use_cases.bookings import BookingUseCase
from interview_scheduler.application.use_cases.slots import SlotManagementUseCase
from interview_scheduler.domain.entities.booking import (
    Booking,
    BookingStatus,
    CandidateSnapshot,
    Feedback,
    InterviewType,
    ReminderFlags,
    RescheduleEntry,
)
from interview_scheduler.domain.entities.invitation import Invitation
from interview_scheduler.domain.entities.slot import MeetingDetails, Slot
from interview_scheduler.infrastructure.store.json_store import JsonBookingStore, JsonInvitationStore, JsonSlotStore

from conftest import NOW, seed_directory


def _slot(**overrides) -> Slot:
    base = Slot(
        id="slot-1",
        employer_id="emp-1",
        date=date(2025, 3, 10),
        start_time="09:00",
        end_time="09:30",
        duration_minutes=30,
        timezone="UTC",
        max_bookings=2,
        meeting_type="in_person",
        meeting_details=MeetingDetails(location="HQ, floor 3", instructions="Ask at reception"),
        created_at=NOW,
        updated_at=NOW,
    )
    return replace(base, **overrides)


def test_slot_store_persistence():
    """Test that a slot survives a new store instance over the same directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        JsonSlotStore(data_dir=tmpdir).add(_slot())

        reopened = JsonSlotStore(data_dir=tmpdir).get("slot-1")
        assert reopened == _slot()
        assert reopened.meeting_details.location == "HQ, floor 3"
        assert reopened.created_at == NOW


def test_reservations_are_durable():
    """Test that capacity counters are written through and ignored by plain updates."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSlotStore(data_dir=tmpdir)
        store.add(_slot())

        assert store.try_reserve("slot-1").current_bookings == 1
        assert store.try_reserve("slot-1").current_bookings == 2
        assert store.try_reserve("slot-1") is None

        # a stale copy must not reset the counter
        store.update(_slot(title="Renamed"))
        reopened = JsonSlotStore(data_dir=tmpdir).get("slot-1")
        assert reopened.title == "Renamed"
        assert reopened.current_bookings == 2

        store.release("slot-1")
        store.release("slot-1")
        store.release("slot-1")
        assert JsonSlotStore(data_dir=tmpdir).get("slot-1").current_bookings == 0


def test_concurrent_reservations_on_json_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSlotStore(data_dir=tmpdir)
        store.add(_slot(max_bookings=3))
        results: list[Slot | None] = []
        barrier = threading.Barrier(8)

        def reserve() -> None:
            barrier.wait()
            results.append(store.try_reserve("slot-1"))

        threads = [threading.Thread(target=reserve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r is not None) == 3
        assert store.get("slot-1").current_bookings == 3


def test_booking_store_round_trips_nested_records():
    """Test that history, feedback, reminder flags and enums persist."""
    with tempfile.TemporaryDirectory() as tmpdir:
        booking = Booking(
            id="b-1",
            slot_id="slot-1",
            employer_id="emp-1",
            candidate_id="cand-a",
            job_id="job-1",
            booking_token="tok-1",
            candidate=CandidateSnapshot(name="Ana Lopez", email="ana@example.com", phone="+1 555 0100"),
            scheduled_date=date(2025, 3, 11),
            scheduled_time="11:00",
            timezone="UTC",
            status=BookingStatus.completed,
            interview_type=InterviewType.technical,
            feedback=Feedback(rating=5, recommendation="strong_hire", strengths=("design", "testing")),
            reminders=ReminderFlags().mark("candidate", "24h").mark("employer", "24h"),
            reschedule_history=(
                RescheduleEntry(
                    previous_date=date(2025, 3, 10),
                    previous_time="09:00",
                    new_date=date(2025, 3, 11),
                    new_time="11:00",
                    reason="travel",
                    rescheduled_by="candidate",
                    rescheduled_at=NOW,
                ),
            ),
            created_at=NOW,
            completed_at=NOW + timedelta(days=10),
        )
        JsonBookingStore(data_dir=tmpdir).add(booking)

        store = JsonBookingStore(data_dir=tmpdir)
        assert store.get("b-1") == booking
        assert store.get_by_token("tok-1").id == "b-1"
        assert store.list_active() == []
        assert [b.id for b in store.list_for_candidate("cand-a")] == ["b-1"]


def test_duplicate_booking_token_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        booking = Booking(
            id="b-1",
            slot_id="slot-1",
            employer_id="emp-1",
            candidate_id="cand-a",
            job_id="job-1",
            booking_token="tok-1",
            candidate=CandidateSnapshot(name="Ana", email="ana@example.com"),
            scheduled_date=date(2025, 3, 10),
            scheduled_time="09:00",
        )
        store.add(booking)
        with pytest.raises(ValueError):
            store.add(replace(booking, id="b-2"))
        assert store.get("b-2") is None


def _plain_booking(**overrides) -> Booking:
    base = Booking(
        id="b-1",
        slot_id="slot-1",
        employer_id="emp-1",
        candidate_id="cand-a",
        job_id="job-1",
        booking_token="tok-1",
        candidate=CandidateSnapshot(name="Ana", email="ana@example.com"),
        scheduled_date=date(2025, 3, 10),
        scheduled_time="09:00",
        created_at=NOW,
    )
    return replace(base, **overrides)


def test_stale_booking_write_is_rejected():
    """Test that a write based on an outdated read does not overwrite a newer record."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        store.add(_plain_booking())
        first_read = store.get("b-1")
        second_read = JsonBookingStore(data_dir=tmpdir).get("b-1")

        cancelled = replace(first_read, status=BookingStatus.cancelled_by_candidate, cancelled_at=NOW)
        assert store.replace_if_unchanged(first_read, cancelled) == cancelled
        assert store.replace_if_unchanged(second_read, replace(second_read, status=BookingStatus.confirmed)) is None
        assert JsonBookingStore(data_dir=tmpdir).get("b-1").status is BookingStatus.cancelled_by_candidate


def test_second_active_booking_for_job_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonBookingStore(data_dir=tmpdir)
        store.add(_plain_booking())
        with pytest.raises(DuplicateBookingError):
            store.add(_plain_booking(id="b-2", booking_token="tok-2", slot_id="slot-2"))
        # another job, or a cancelled earlier booking, does not count
        store.add(_plain_booking(id="b-3", booking_token="tok-3", job_id="job-2"))
        current = store.get("b-1")
        store.replace_if_unchanged(current, replace(current, status=BookingStatus.cancelled_by_employer))
        store.add(_plain_booking(id="b-4", booking_token="tok-4", slot_id="slot-2"))
        assert [b.id for b in store.list_active()] == ["b-3", "b-4"]


def test_invitation_store_persistence():
    with tempfile.TemporaryDirectory() as tmpdir:
        invitation = Invitation(
            id="inv-1",
            booking_id="b-1",
            employer_id="emp-1",
            job_id="job-1",
            candidate_email="ana@example.com",
            token="invite-token",
            expires_at=NOW + timedelta(days=7),
            application_id="app-1",
            sent_at=NOW,
        )
        JsonInvitationStore(data_dir=tmpdir).add(invitation)
        store = JsonInvitationStore(data_dir=tmpdir)
        assert store.get_by_token("invite-token") == invitation
        assert store.replace_if_unchanged(invitation, replace(invitation, status="opened")) is not None
        assert store.replace_if_unchanged(invitation, replace(invitation, status="voided")) is None
        assert [i.status for i in JsonInvitationStore(data_dir=tmpdir).list_for_application("app-1")] == ["opened"]


def test_file_layout_is_versioned():
    with tempfile.TemporaryDirectory() as tmpdir:
        JsonSlotStore(data_dir=tmpdir).add(_slot())
        payload = json.loads((Path(tmpdir) / "slots.json").read_text(encoding="utf-8"))
        assert payload["version"] == 1
        assert payload["records"]["slot-1"]["date"] == "2025-03-10"
        assert not (Path(tmpdir) / "slots.json.tmp").exists()


def test_booking_flow_over_json_stores():
    """Test the booking lifecycle end to end with file-backed stores."""
    with tempfile.TemporaryDirectory() as tmpdir:
        directory = seed_directory()
        slot_store = JsonSlotStore(data_dir=tmpdir)
        booking_store = JsonBookingStore(data_dir=tmpdir)
        slots = SlotManagementUseCase(slots=slot_store, directory=directory, default_timezone="UTC")
        bookings = BookingUseCase(slots=slot_store, bookings=booking_store, directory=directory)
        employer = Caller("emp-1", "employer")

        slot = slots.create_slot(
            employer, SlotSpec(date=date(2025, 3, 10), start_time="09:00", end_time="09:30"), now=NOW
        )[0]
        booking = bookings.create_booking(
            Caller("cand-a", "candidate"), BookingRequest(slot_id=slot.id, job_id="job-1"), now=NOW
        ).booking
        bookings.transition(employer, booking.id, "confirmed", now=NOW)
        start = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
        bookings.transition(employer, booking.id, "in_progress", now=start)
        bookings.transition(
            employer, booking.id, "completed", feedback=FeedbackInput(rating=3, comments="solid"), now=start
        )

        stored = JsonBookingStore(data_dir=tmpdir).get(booking.id)
        assert stored.status is BookingStatus.completed
        assert stored.feedback.comments == "solid"
        assert JsonSlotStore(data_dir=tmpdir).get(slot.id).current_bookings == 1
