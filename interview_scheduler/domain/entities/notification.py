from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    title: str
    message: str
    severity: str = "info"  # "info", "success", "warning", "error"
