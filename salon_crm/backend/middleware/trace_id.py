"""Per-request trace id, echoed back in X-Trace-Id and included in error envelopes."""
import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

HEADER = "X-Trace-Id"
_VALID = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def new_trace_id() -> str:
    return uuid.uuid4().hex[:16]


def incoming_trace_id(request: Request) -> str:
    """Schedulers may pass their own X-Trace-Id so a cron run can be followed end to end."""
    tid = (request.headers.get(HEADER) or "").strip()
    return tid if _VALID.match(tid) else new_trace_id()


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        tid = incoming_trace_id(request)
        request.state.trace_id = tid
        response = await call_next(request)
        response.headers[HEADER] = tid
        return response
