from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Invitation:
    id: str
    booking_id: str
    employer_id: str
    job_id: str
    candidate_email: str
    token: str
    expires_at: datetime
    application_id: str | None = None
    status: str = "sent"  # "sent", "opened", "scheduled", "expired", "voided"
    sent_at: datetime | None = None
    scheduled_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.status == "expired" or now > self.expires_at

    @property
    def is_live(self) -> bool:
        return self.status in ("sent", "opened")
