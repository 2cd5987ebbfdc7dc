from __future__ import annotations

from abc import ABC, abstractmethod

from interview_scheduler.domain.entities.invitation import Invitation


class InvitationStorePort(ABC):
    @abstractmethod
    def add(self, invitation: Invitation) -> Invitation:
        raise NotImplementedError

    @abstractmethod
    def get_by_token(self, token: str) -> Invitation | None:
        raise NotImplementedError

    @abstractmethod
    def replace_if_unchanged(self, current: Invitation, updated: Invitation) -> Invitation | None:
        """Compare-and-set on the whole record; None if it changed since ``current`` was read."""
        raise NotImplementedError

    @abstractmethod
    def list_for_application(self, application_id: str) -> list[Invitation]:
        raise NotImplementedError
