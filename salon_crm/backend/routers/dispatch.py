"""Scheduler triggers: send pending feedback / winback SMS, daily winback evaluation."""
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from salon_crm.backend.auth import require_cron_or_owner
from salon_crm.backend.deps import get_db
from salon_crm.backend.services import pending_messages, winback_campaigns
from salon_crm.backend.utils.api_errors import error_response

router = APIRouter(dependencies=[Depends(require_cron_or_owner)])
logger = logging.getLogger(__name__)


@router.post("/feedback/send-pending")
def feedback_send_pending(request: Request, db: Session = Depends(get_db)):
    try:
        summary = pending_messages.send_pending_feedback(db)
    except Exception as e:
        logger.exception("feedback send-pending run failed")
        return error_response(request, 500, "dispatch_failed", "Failed to process feedback requests", str(e)[:200])
    return summary.as_response()


@router.post("/winback/send-pending")
def winback_send_pending(request: Request, db: Session = Depends(get_db)):
    try:
        summary = pending_messages.send_pending_winback(db)
    except Exception as e:
        logger.exception("winback send-pending run failed")
        return error_response(request, 500, "dispatch_failed", "Failed to process winback messages", str(e)[:200])
    return summary.as_response()


@router.post("/cron/run-daily")
def cron_run_daily(request: Request, db: Session = Depends(get_db)):
    try:
        return winback_campaigns.run_daily_winback(db)
    except Exception as e:
        logger.exception("daily winback job failed")
        return error_response(request, 500, "daily_job_failed", "Failed to run daily winback job", str(e)[:200])
