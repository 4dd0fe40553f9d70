"""Client for the AI text-analysis worker (issue classification)."""
from __future__ import annotations

import httpx


def classify_feedback_text(
    worker_url: str,
    text: str,
    rating: int | None = None,
    timeout: int = 20,
) -> tuple[dict | None, str | None]:
    """Returns (classification, error)."""
    payload = {"task": "classify_feedback", "text": text, "rating": rating}
    try:
        r = httpx.post(worker_url, json=payload, timeout=timeout)
        data = r.json() if r.content else {}
    except (httpx.HTTPError, ValueError) as e:
        return None, str(e)[:200] or "request_failed"
    if r.status_code >= 400:
        return None, (data.get("error") if isinstance(data, dict) else None) or f"http_{r.status_code}"
    if not isinstance(data, dict):
        return None, "bad_response"
    return data, None
