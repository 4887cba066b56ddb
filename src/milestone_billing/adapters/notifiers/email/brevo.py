from __future__ import annotations

import httpx
import structlog

from milestone_billing.adapters.notifiers.base import BaseNotifier

logger = structlog.get_logger()


class BrevoEmail(BaseNotifier):
    """
    E-mails transacionais via Brevo (API v3).
    """

    ENDPOINT = "https://api.brevo.com/v3/smtp/email"

    def __init__(self, api_key: str, from_email: str):
        super().__init__("brevo", "email")
        self._api_key    = api_key
        self._from_email = from_email

    def send(self, recipients: list[str], subject: str, html: str) -> None:
        if not recipients:
            return

        payload = {
            "sender":      {"email": self._from_email},
            "to":          [{"email": r} for r in recipients],
            "subject":     subject,
            "htmlContent": html,
        }
        headers = {
            "api-key":      self._api_key,
            "accept":       "application/json",
            "content-type": "application/json",
        }

        try:
            self._request("POST", self.ENDPOINT, json=payload, headers=headers)
        except httpx.HTTPStatusError as exc:
            resp = exc.response
            detail = resp.json() if resp.headers.get("content-type", "").startswith("application/json") else resp.text
            logger.error("brevo.error", status=resp.status_code, detail=detail)
            raise

        logger.info(
            "email.sent",
            provider=self.provider,
            from_=self._from_email,
            recipients=len(recipients),
            subject=subject,
        )
