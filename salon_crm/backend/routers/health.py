"""Liveness and readiness probes."""
import logging

import redis
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_crm.backend.config import get_settings
from salon_crm.backend.deps import get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    s = get_settings()
    return {"status": "ok", "service": "salon_crm", "env": s.app_env, "sms_provider": s.sms_provider}


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    """503 until Postgres and Redis (run locks, RQ) both answer."""
    s = get_settings()
    checks = {"database": "ok", "redis": "ok"}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("ready: database check failed: %s", e)
        checks["database"] = str(e)[:200]
    try:
        redis.Redis(host=s.redis_host, port=s.redis_port, socket_connect_timeout=2).ping()
    except redis.RedisError as e:
        logger.warning("ready: redis check failed: %s", e)
        checks["redis"] = str(e)[:200]
    if any(v != "ok" for v in checks.values()):
        return JSONResponse({"status": "error", "checks": checks}, status_code=503)
    return {"status": "ok", "checks": checks}
