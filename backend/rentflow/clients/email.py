from __future__ import annotations

import re
from typing import Any

import httpx

from ..config import settings
from ..domain.messages import EmailMessage


class EmailSendError(RuntimeError):
    pass


class EmailClient:
    """
    ZeptoMail-style transactional email API (POST JSON, `Zoho-enczapikey` auth).
    Any provider that accepts the same payload shape works by changing
    EMAIL_API_URL.
    """

    def __init__(self) -> None:
        self.url = settings.email_api_url
        self.token = settings.email_api_token
        self.timeout = float(settings.email_timeout_seconds)

    def enabled(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict[str, str]:
        token = self.token or ""
        if not token.startswith("Zoho-enczapikey "):
            token = f"Zoho-enczapikey {token}"
        return {"Authorization": token, "Content-Type": "application/json", "Accept": "application/json"}

    @staticmethod
    def _text_fallback(html_body: str) -> str:
        text = re.sub(r"<[^>]*>", " ", html_body)
        text = text.replace("&nbsp;", " ").replace("&amp;", "&").replace("&lt;", "<").replace("&gt;", ">")
        return re.sub(r"\s+", " ", text).strip()

    def payload(self, msg: EmailMessage) -> dict[str, Any]:
        return {
            "from": {"address": settings.email_from_address, "name": settings.email_from_name},
            "to": [{"email_address": {"address": msg.to_address, "name": msg.to_name or msg.to_address}}],
            "subject": msg.subject,
            "htmlbody": msg.html_body,
            "textbody": self._text_fallback(msg.html_body),
        }

    def send(self, msg: EmailMessage) -> dict[str, Any]:
        if not self.token:
            raise EmailSendError("email_api_token not set")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.post(self.url, headers=self._headers(), json=self.payload(msg))
                r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise EmailSendError(f"provider returned {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise EmailSendError(f"{type(e).__name__}: {e}") from e

        try:
            return r.json()
        except ValueError:
            return {"raw": r.text[:200]}
