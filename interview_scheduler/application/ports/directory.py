from __future__ import annotations

from abc import ABC, abstractmethod

from interview_scheduler.domain.entities.profile import CandidateProfile, EmployerProfile, JobProfile


class DirectoryPort(ABC):
    """Read access to profiles owned by the rest of the platform."""

    @abstractmethod
    def get_employer(self, employer_id: str) -> EmployerProfile | None:
        raise NotImplementedError

    @abstractmethod
    def get_job(self, job_id: str) -> JobProfile | None:
        raise NotImplementedError

    @abstractmethod
    def get_candidate(self, candidate_id: str) -> CandidateProfile | None:
        raise NotImplementedError
