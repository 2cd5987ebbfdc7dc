from __future__ import annotations

import logging

import httpx

from interview_scheduler.application.ports.email_transport import EmailMessage, EmailResult, EmailTransportPort


class HttpEmailTransport(EmailTransportPort):
    """Sends mail through a Resend-compatible HTTP API."""

    def __init__(
        self,
        api_key: str,
        api_url: str,
        sender: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("EMAIL_API_KEY is required for the HTTP email transport")
        self._api_key = api_key
        self._api_url = api_url
        self._sender = sender
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def send_email(self, message: EmailMessage) -> EmailResult:
        payload = {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

        try:
            resp = self._client.post(self._api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error("Email send failed", extra={"error": str(e)})
            return EmailResult(success=False, error=str(e))

        if resp.status_code >= 400:
            try:
                error_message = resp.json().get("message") or resp.text
            except ValueError:
                error_message = resp.text
            self._logger.error(
                "Email send rejected",
                extra={"status": resp.status_code, "error": error_message},
            )
            return EmailResult(success=False, error=error_message)

        try:
            message_id = resp.json().get("id")
        except ValueError:
            message_id = None
        self._logger.info("Email sent", extra={"event": "email_sent"})
        return EmailResult(success=True, message_id=message_id)

    def close(self) -> None:
        self._client.close()
