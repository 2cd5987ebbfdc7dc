from __future__ import annotations

import json
import logging
from pathlib import Path

from interview_scheduler.application.ports.directory import DirectoryPort
from interview_scheduler.domain.entities.profile import CandidateProfile, EmployerProfile, JobProfile


class MemoryDirectory(DirectoryPort):
    def __init__(self) -> None:
        self._employers: dict[str, EmployerProfile] = {}
        self._jobs: dict[str, JobProfile] = {}
        self._candidates: dict[str, CandidateProfile] = {}

    @classmethod
    def from_file(cls, path: str) -> "MemoryDirectory":
        """Seed the directory from a JSON file with employers, jobs and candidates lists."""
        directory = cls()
        file_path = Path(path)
        if not file_path.exists():
            logging.getLogger(__name__).warning("Directory file not found", extra={"error": path})
            return directory

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        for raw in data.get("employers", []):
            directory.add_employer(EmployerProfile(**raw))
        for raw in data.get("jobs", []):
            directory.add_job(JobProfile(**raw))
        for raw in data.get("candidates", []):
            directory.add_candidate(CandidateProfile(**raw))
        return directory

    def add_employer(self, employer: EmployerProfile) -> None:
        self._employers[employer.id] = employer

    def add_job(self, job: JobProfile) -> None:
        self._jobs[job.id] = job

    def add_candidate(self, candidate: CandidateProfile) -> None:
        self._candidates[candidate.id] = candidate

    def get_employer(self, employer_id: str) -> EmployerProfile | None:
        return self._employers.get(employer_id)

    def get_job(self, job_id: str) -> JobProfile | None:
        return self._jobs.get(job_id)

    def get_candidate(self, candidate_id: str) -> CandidateProfile | None:
        return self._candidates.get(candidate_id)
