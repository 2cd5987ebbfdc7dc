from dataclasses import dataclass


@dataclass(frozen=True)
class EmployerProfile:
    id: str
    company_name: str
    email: str | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class JobProfile:
    id: str
    employer_id: str
    title: str
    location: str | None = None


@dataclass(frozen=True)
class CandidateProfile:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email.split("@")[0]
