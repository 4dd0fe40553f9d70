"""Outbound SMS transports used by the dispatch jobs."""
from __future__ import annotations

import logging
import uuid
from typing import Protocol

from salon_crm.backend.clients import twilio as twilio_client
from salon_crm.backend.config import get_settings

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Provider refused or could not accept the message."""

    def __init__(self, reason: str, code: int | str | None = None):
        self.reason = reason
        self.code = code
        super().__init__(f"[{code}] {reason}" if code else reason)


class SmsTransport(Protocol):
    def send(self, destination: str, body: str) -> str:
        """Deliver body to destination, return the provider message id."""
        ...


class TwilioTransport:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str = "",
        messaging_service_sid: str = "",
        timeout: int = 10,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.timeout = timeout

    def send(self, destination: str, body: str) -> str:
        to = twilio_client.format_phone_e164(destination)
        if not twilio_client.is_e164(to):
            raise DeliveryError(f"invalid_phone_number: {destination}")
        if not self.account_sid or not self.auth_token:
            raise DeliveryError("twilio_not_configured")
        if not self.from_number and not self.messaging_service_sid:
            raise DeliveryError("twilio_sender_not_configured")
        sid, err, code = twilio_client.twilio_send_message(
            self.account_sid,
            self.auth_token,
            to,
            body,
            from_number=self.from_number,
            messaging_service_sid=self.messaging_service_sid,
            timeout=self.timeout,
        )
        if err or not sid:
            raise DeliveryError(err or "send_failed", code)
        logger.info("sms sent to=%s sid=%s", to, sid)
        return sid


class ConsoleTransport:
    """Development transport: logs instead of sending."""

    def send(self, destination: str, body: str) -> str:
        if not (destination or "").strip():
            raise DeliveryError("empty_destination")
        message_id = f"console-{uuid.uuid4().hex[:16]}"
        logger.info("sms (console) to=%s id=%s body=%r", destination, message_id, body)
        return message_id


def get_transport() -> SmsTransport:
    s = get_settings()
    provider = (s.sms_provider or "console").strip().lower()
    if provider == "twilio":
        return TwilioTransport(
            s.twilio_account_sid,
            s.twilio_auth_token,
            from_number=s.twilio_from_number,
            messaging_service_sid=s.twilio_messaging_service_sid,
            timeout=s.twilio_timeout_seconds,
        )
    if provider != "console":
        logger.warning("unknown sms_provider=%s, falling back to console", provider)
    return ConsoleTransport()
