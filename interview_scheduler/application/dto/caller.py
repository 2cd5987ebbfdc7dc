from __future__ import annotations

from dataclasses import dataclass


ROLES = ("candidate", "employer", "recruitment_partner", "admin")


@dataclass(frozen=True)
class Caller:
    """Identity of the party making a request. Authenticated upstream."""

    user_id: str
    role: str

    @property
    def is_employer(self) -> bool:
        return self.role == "employer"

    @property
    def is_candidate(self) -> bool:
        return self.role == "candidate"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
