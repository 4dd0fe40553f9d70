"""FastAPI entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from salon_crm.backend.config import get_settings
from salon_crm.backend.middleware.trace_id import HEADER, TraceIdMiddleware, new_trace_id
from salon_crm.backend.routers import health, auth, dispatch, checkin, feedback, settings, issues

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()
    logging.basicConfig(level=logging.DEBUG if s.debug else logging.INFO)
    if s.sms_provider != "twilio":
        logger.warning("sms_provider=%s: messages are logged, not sent", s.sms_provider)
    if not s.cron_secret:
        logger.warning("cron_secret is empty: job triggers accept owner tokens only")
    yield


app = FastAPI(
    title="Salon CRM",
    description="Check-in, feedback requests, issue inbox and winback SMS for a salon",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(TraceIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["System"])
app.include_router(auth.router, prefix="/v1/auth", tags=["Auth"])
app.include_router(dispatch.router, prefix="/v1", tags=["Jobs"])
app.include_router(checkin.router, prefix="/v1/checkin", tags=["Check-in"])
app.include_router(feedback.router, prefix="/v1/feedback", tags=["Feedback"])
app.include_router(settings.router, prefix="/v1/settings", tags=["Settings"])
app.include_router(issues.router, prefix="/v1/issues", tags=["Issues"])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if not isinstance(detail, str):
        detail = str(detail) if detail else "Error"
    return JSONResponse(content={"detail": detail}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Never return HTML for unhandled errors: JSON with trace_id."""
    trace_id = getattr(request.state, "trace_id", None) or new_trace_id()
    logger.exception("Unhandled exception trace_id=%s path=%s", trace_id, request.url.path)
    resp = JSONResponse(
        content={"success": False, "error": "internal_error", "message": "Internal server error", "trace_id": trace_id},
        status_code=500,
    )
    resp.headers[HEADER] = trace_id
    return resp
