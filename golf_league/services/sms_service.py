"""
Twilio SMS client.

Sends messages through the Twilio REST API with httpx. A send never raises:
every outcome is returned as an SmsResult so batch callers can record
per-recipient failures and keep going.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from golf_league.utils.constants import SMS_REQUEST_TIMEOUT_SECONDS, TWILIO_API_BASE_URL

logger = logging.getLogger(__name__)


@dataclass
class SmsResult:
    success: bool
    sid: Optional[str] = None
    error: Optional[str] = None


def get_twilio_config() -> Dict[str, str]:
    """Read Twilio credentials from the environment."""
    return {
        "account_sid": (os.getenv("TWILIO_ACCOUNT_SID") or "").strip(),
        "auth_token": (os.getenv("TWILIO_AUTH_TOKEN") or "").strip(),
        "phone_number": (os.getenv("TWILIO_PHONE_NUMBER") or "").strip(),
    }


def twilio_configured(config: Optional[Dict[str, str]] = None) -> bool:
    """True when account SID, auth token and sender number are all set."""
    cfg = config if config is not None else get_twilio_config()
    return bool(cfg["account_sid"] and cfg["auth_token"] and cfg["phone_number"])


class TwilioGateway:
    """Minimal Twilio Messages API client."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = SMS_REQUEST_TIMEOUT_SECONDS,
        enabled: bool = True,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: Dict[str, str], enabled: bool = True) -> "TwilioGateway":
        return cls(
            account_sid=config["account_sid"],
            auth_token=config["auth_token"],
            from_number=config["phone_number"],
            enabled=enabled,
        )

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE_URL}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, to: str, body: str, from_: Optional[str] = None) -> SmsResult:
        """
        Send one SMS.

        Args:
            to: Destination number (E.164)
            body: Message text
            from_: Sender override; defaults to the configured number

        Returns:
            SmsResult with the message SID on success or the gateway's
            error message on failure
        """
        if not self.enabled:
            return SmsResult(success=False, error="SMS sending is disabled")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.messages_url,
                    data={"To": to, "From": from_ or self.from_number, "Body": body},
                    auth=(self.account_sid, self.auth_token),
                )
            if resp.status_code >= 400:
                return SmsResult(success=False, error=_error_message(resp))
            try:
                data = resp.json()
            except ValueError:
                data = None
            sid = data.get("sid") if isinstance(data, dict) else None
            return SmsResult(success=True, sid=sid)
        except httpx.RequestError as e:
            logger.warning(f"Twilio request failed for {to}: {e}")
            return SmsResult(success=False, error=str(e) or e.__class__.__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text or f"HTTP {resp.status_code}"
