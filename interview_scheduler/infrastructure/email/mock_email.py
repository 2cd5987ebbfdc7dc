from __future__ import annotations

import logging

from interview_scheduler.application.ports.email_transport import EmailMessage, EmailResult, EmailTransportPort


class MockEmailTransport(EmailTransportPort):
    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self._logger = logging.getLogger(__name__)

    def send_email(self, message: EmailMessage) -> EmailResult:
        self.sent.append(message)
        self._logger.info("Mock email sent", extra={"event": message.subject})
        return EmailResult(success=True, message_id=f"mock_email_{len(self.sent)}")
