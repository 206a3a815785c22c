import logging
import os
from typing import Any, Mapping, Optional

import requests
from dotenv import load_dotenv

from .utils import mask_phone_number

logger = logging.getLogger(__name__)

TERMII_BASE_URL = "https://api.ng.termii.com/api"
TWILIO_BASE_URL = "https://api.twilio.com/2010-04-01"
PROVIDERS = ("termii", "twilio")


class SMSClient:
    """Thin HTTP client for the Termii and Twilio SMS APIs.

    Credentials are read from the environment (``.env`` is loaded first):
    ``SMS_PROVIDER``, ``TERMII_API_KEY``, ``TERMII_SENDER_ID``,
    ``TWILIO_ACCOUNT_SID``, ``TWILIO_AUTH_TOKEN`` and ``TWILIO_PHONE_NUMBER``.
    When the preferred provider fails and the other one is configured, the
    message is retried once through the other provider.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 15,
    ):
        load_dotenv()
        self.provider = (provider or os.getenv("SMS_PROVIDER") or "twilio").lower()
        if self.provider not in PROVIDERS:
            raise ValueError(f"Unsupported SMS provider '{self.provider}'")

        self.termii_api_key = os.getenv("TERMII_API_KEY")
        self.termii_sender_id = os.getenv("TERMII_SENDER_ID") or "BrainQuiz"
        self.twilio_account_sid = os.getenv("TWILIO_ACCOUNT_SID")
        self.twilio_auth_token = os.getenv("TWILIO_AUTH_TOKEN")
        self.twilio_number = os.getenv("TWILIO_PHONE_NUMBER")

        self.session = session or requests.Session()
        self.timeout = timeout

    # -------- configuration --------
    @property
    def termii_configured(self) -> bool:
        return bool(self.termii_api_key)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)

    def _is_configured(self, provider: str) -> bool:
        if provider == "termii":
            return self.termii_configured
        return self.twilio_configured

    # -------- core request --------
    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        data: Optional[dict] = None,
        auth: Optional[tuple[str, str]] = None,
    ) -> Any:
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or {"Accept": "application/json"},
            params=params,
            json=json,
            data=data,
            auth=auth,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- providers --------
    def send_via_termii(self, phone_number: str, message: str) -> dict:
        if not self.termii_configured:
            raise RuntimeError("Environment variable 'TERMII_API_KEY' is not set")
        body = self._request(
            "POST",
            f"{TERMII_BASE_URL}/sms/send",
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            json={
                "to": phone_number,
                "from": self.termii_sender_id,
                "sms": message,
                "type": "plain",
                "api_key": self.termii_api_key,
                "channel": "generic",
            },
        )
        message_id = (body or {}).get("message_id")
        if not message_id:
            raise RuntimeError(
                f"Termii did not accept the message: {(body or {}).get('message')}"
            )
        logger.info(f"SMS sent via Termii to {mask_phone_number(phone_number)}")
        return {"success": True, "messageId": message_id, "provider": "termii"}

    def send_via_twilio(self, phone_number: str, message: str) -> dict:
        if not self.twilio_configured:
            raise RuntimeError(
                "Environment variables 'TWILIO_ACCOUNT_SID' and "
                "'TWILIO_AUTH_TOKEN' must be set"
            )
        body = self._request(
            "POST",
            f"{TWILIO_BASE_URL}/Accounts/{self.twilio_account_sid}/Messages.json",
            data={"To": phone_number, "From": self.twilio_number, "Body": message},
            auth=(self.twilio_account_sid, self.twilio_auth_token),
        )
        logger.info(f"SMS sent via Twilio to {mask_phone_number(phone_number)}")
        return {"success": True, "messageId": (body or {}).get("sid"), "provider": "twilio"}

    def _send_with(self, provider: str, phone_number: str, message: str) -> dict:
        if provider == "termii":
            return self.send_via_termii(phone_number, message)
        return self.send_via_twilio(phone_number, message)

    def send(self, phone_number: str, message: str) -> dict:
        """Deliver ``message`` to an already formatted ``phone_number``.

        Returns
        -------
        dict
            ``{"success": True, "messageId": ..., "provider": ...}``.

        Raises
        ------
        RuntimeError
            If no provider is configured or every configured provider failed.
        """
        fallback = "termii" if self.provider == "twilio" else "twilio"
        if not self._is_configured(self.provider) and not self._is_configured(fallback):
            raise RuntimeError("No SMS provider configured")

        try:
            return self._send_with(self.provider, phone_number, message)
        except (requests.RequestException, RuntimeError, ValueError) as e:
            if not self._is_configured(fallback):
                raise RuntimeError(f"SMS delivery failed: {e}") from e
            logger.warning(f"{self.provider} SMS failed ({e}); trying {fallback}")
            try:
                return self._send_with(fallback, phone_number, message)
            except (requests.RequestException, RuntimeError, ValueError) as fallback_error:
                logger.error(f"Both SMS providers failed: {fallback_error}")
                raise RuntimeError(f"SMS delivery failed: {e}") from fallback_error

    def check_balance(self) -> dict:
        """Return the account balance of the preferred provider."""
        if self.provider == "termii":
            if not self.termii_configured:
                raise RuntimeError("Environment variable 'TERMII_API_KEY' is not set")
            body = self._request(
                "GET",
                f"{TERMII_BASE_URL}/get-balance",
                params={"api_key": self.termii_api_key},
            ) or {}
            return {
                "balance": body.get("balance"),
                "currency": body.get("currency") or "NGN",
                "provider": "termii",
            }
        if not self.twilio_configured:
            raise RuntimeError("Twilio credentials are not set")
        body = self._request(
            "GET",
            f"{TWILIO_BASE_URL}/Accounts/{self.twilio_account_sid}/Balance.json",
            auth=(self.twilio_account_sid, self.twilio_auth_token),
        ) or {}
        return {
            "balance": body.get("balance"),
            "currency": body.get("currency") or "USD",
            "provider": "twilio",
        }
