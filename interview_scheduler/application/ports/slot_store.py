from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from interview_scheduler.domain.entities.slot import Slot


class SlotStorePort(ABC):
    @abstractmethod
    def add(self, slot: Slot) -> Slot:
        raise NotImplementedError

    @abstractmethod
    def get(self, slot_id: str) -> Slot | None:
        raise NotImplementedError

    @abstractmethod
    def update(self, slot: Slot) -> Slot:
        raise NotImplementedError

    @abstractmethod
    def delete(self, slot_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_for_employer(
        self,
        employer_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Slot]:
        """Slots of one employer with start <= date <= end, ordered by date and start time."""
        raise NotImplementedError

    @abstractmethod
    def try_reserve(self, slot_id: str) -> Slot | None:
        """
        Atomically increment current_bookings if the slot is open.
        Returns the updated slot, or None when the slot is missing or not open.
        """
        raise NotImplementedError

    @abstractmethod
    def release(self, slot_id: str) -> Slot | None:
        """Atomically decrement current_bookings, never below zero."""
        raise NotImplementedError
