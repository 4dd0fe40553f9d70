"""Twilio Programmable Messaging REST client."""
from __future__ import annotations

import re

import httpx

API_BASE = "https://api.twilio.com/2010-04-01"

_E164_RE = re.compile(r"^\+\d{10,15}$")


def _messages_url(account_sid: str) -> str:
    return f"{API_BASE}/Accounts/{account_sid}/Messages.json"


def format_phone_e164(phone: str) -> str:
    """Normalize common US formats to E.164 (+1XXXXXXXXXX)."""
    raw = (phone or "").strip()
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if raw.startswith("+"):
        return f"+{digits}"
    return f"+{digits}" if digits else ""


def is_e164(phone: str) -> bool:
    return bool(_E164_RE.match(phone or ""))


def twilio_send_message(
    account_sid: str,
    auth_token: str,
    to: str,
    body: str,
    *,
    from_number: str = "",
    messaging_service_sid: str = "",
    timeout: int = 10,
) -> tuple[str | None, str | None, int | None]:
    """Returns (message_sid, error, error_code)."""
    data = {"To": to, "Body": body}
    if messaging_service_sid:
        data["MessagingServiceSid"] = messaging_service_sid
    else:
        data["From"] = from_number
    try:
        r = httpx.post(
            _messages_url(account_sid),
            auth=(account_sid, auth_token),
            data=data,
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        return None, str(e)[:200] or "http_error", None
    try:
        payload = r.json() if r.content else {}
    except ValueError:
        payload = {}
    if r.status_code in (200, 201):
        sid = payload.get("sid")
        if not sid:
            return None, "missing_sid", None
        return sid, None, None
    message = payload.get("message") or f"http_{r.status_code}"
    return None, str(message)[:200], payload.get("code")
