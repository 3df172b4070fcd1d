"""Email delivery of onboarding credentials to new RFID account holders."""

from __future__ import annotations

import logging

import requests

from .config import Settings

logger = logging.getLogger(__name__)

SUBJECT = "ParkNcharge Credentials (no-reply)"


class EmailDispatcher:
    """Sends onboarding credentials through a transactional email HTTP API."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def send_onboarding_credential(self, email_address: str, password: str) -> bool:
        """Deliver ``password`` to ``email_address``; return ``False`` instead of raising."""
        if not self._settings.email_api_key:
            logger.warning("email api key not configured, onboarding credential not sent")
            return False

        payload = {
            "sender": {
                "name": self._settings.email_sender_name,
                "email": self._settings.email_sender_address,
            },
            "to": [{"email": email_address}],
            "subject": SUBJECT,
            "htmlContent": _html_body(password),
            "textContent": _text_body(password),
        }
        try:
            response = self._session.post(
                self._settings.email_api_url,
                headers={
                    "api-key": self._settings.email_api_key,
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self._settings.email_timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("onboarding credential email failed: %s", exc)
            return False

        logger.info("onboarding credential email accepted with status %s", response.status_code)
        return True


def _html_body(password: str) -> str:
    return f"""
        <h1>ParkNcharge</h1>
        <h2>PLEASE DO NOT SHARE THIS OTP TO ANYONE</h2>
        <p>{password}</p>
        <p>Kind regards,</p>
        <p><b>ParkNcharge</b></p>
    """


def _text_body(password: str) -> str:
    return (
        "ParkNcharge\n\n"
        "PLEASE DO NOT SHARE THIS OTP TO ANYONE\n\n"
        f"{password}\n\n"
        "Kind regards,\nParkNcharge"
    )
