"""Error envelope for job-trigger endpoints."""
from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


def error_envelope(
    *,
    code: str,
    message: str,
    trace_id: str | None = None,
    detail: str | None = None,
) -> dict:
    out = {
        "success": False,
        "error": code,
        "message": message,
    }
    if trace_id:
        out["trace_id"] = trace_id
    if detail:
        out["detail"] = detail
    return out


def error_response(request: Request, status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    trace_id = getattr(request.state, "trace_id", None)
    return JSONResponse(
        error_envelope(code=code, message=message, trace_id=trace_id, detail=detail),
        status_code=status_code,
    )
