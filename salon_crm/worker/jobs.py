"""RQ jobs. Each job opens its own session; schedulers enqueue these by dotted path."""
import logging

logger = logging.getLogger(__name__)


def send_pending_feedback() -> dict:
    """Send due feedback-request SMS."""
    from salon_crm.backend.database import session_scope
    from salon_crm.backend.services.pending_messages import send_pending_feedback as run

    with session_scope() as db:
        return run(db).as_response()


def send_pending_winback() -> dict:
    from salon_crm.backend.database import session_scope
    from salon_crm.backend.services.pending_messages import send_pending_winback as run

    with session_scope() as db:
        return run(db).as_response()


def run_daily_winback() -> dict:
    """Create pending winback messages for active campaigns."""
    from salon_crm.backend.database import session_scope
    from salon_crm.backend.services.winback_campaigns import run_daily_winback as run

    with session_scope() as db:
        return run(db)


def classify_feedback(feedback_id: str) -> bool:
    """Classify a low-rated answer and open an issue for it."""
    from salon_crm.backend.database import session_scope
    from salon_crm.backend.services.issues import record_issue_for_feedback

    try:
        with session_scope() as db:
            issue = record_issue_for_feedback(db, feedback_id)
            return issue is not None
    except Exception:
        logger.exception("classify_feedback failed feedback=%s", feedback_id)
        return False
