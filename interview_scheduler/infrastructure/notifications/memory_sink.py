from __future__ import annotations

import logging
import threading

from interview_scheduler.application.ports.notification_sink import NotificationSinkPort
from interview_scheduler.domain.entities.notification import Notification


class MemoryNotificationSink(NotificationSinkPort):
    def __init__(self, limit: int = 1000) -> None:
        self._records: list[Notification] = []
        self._limit = limit
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def send(self, recipient_id: str, title: str, message: str, severity: str = "info") -> None:
        with self._lock:
            self._records.append(
                Notification(recipient_id=recipient_id, title=title, message=message, severity=severity)
            )
            if len(self._records) > self._limit:
                self._records = self._records[-self._limit :]
        self._logger.info("Notification stored", extra={"event": title})

    def for_recipient(self, recipient_id: str) -> list[Notification]:
        return [n for n in list(self._records) if n.recipient_id == recipient_id]
