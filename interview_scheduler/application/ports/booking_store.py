from __future__ import annotations

from abc import ABC, abstractmethod

from interview_scheduler.domain.entities.booking import Booking


class BookingStorePort(ABC):
    @abstractmethod
    def add(self, booking: Booking) -> Booking:
        """
        Insert a booking.

        Raises ValueError if the booking token is already taken, and
        DuplicateBookingError if the candidate already holds an active
        booking for the same job. Both checks run under the store lock.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, booking_id: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_token(self, token: str) -> Booking | None:
        raise NotImplementedError

    @abstractmethod
    def replace_if_unchanged(self, current: Booking, updated: Booking) -> Booking | None:
        """
        Store ``updated`` only if the stored record still equals ``current``.
        Returns None when another write got there first.
        """
        raise NotImplementedError

    @abstractmethod
    def list_for_employer(self, employer_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    def list_for_candidate(self, candidate_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    def list_for_application(self, application_id: str) -> list[Booking]:
        raise NotImplementedError

    @abstractmethod
    def list_active(self) -> list[Booking]:
        """Bookings that are scheduled, confirmed or rescheduled."""
        raise NotImplementedError
