"""Issues from low ratings: AI classification hook and owner inbox."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy import case, select
from sqlalchemy.orm import Session, joinedload

from salon_crm.backend.clients import ai_worker
from salon_crm.backend.config import get_settings
from salon_crm.backend.models.feedback import FeedbackRequest
from salon_crm.backend.models.issue import Issue

logger = logging.getLogger(__name__)

SEVERITIES = ("low", "medium", "high")
STATUSES = ("open", "in_progress", "resolved")


class ClassificationError(Exception):
    pass


@dataclass
class IssueClassification:
    is_issue: bool
    severity: str
    category: str
    summary: str


def fallback_severity(rating: int | None) -> str:
    if rating is None:
        return "medium"
    if rating <= 3:
        return "high"
    if rating <= 5:
        return "medium"
    return "low"


def classify(text: str, rating: int | None = None) -> IssueClassification:
    s = get_settings()
    data, err = ai_worker.classify_feedback_text(
        s.ai_worker_url, text, rating, timeout=s.ai_worker_timeout_seconds
    )
    if err or data is None:
        raise ClassificationError(err or "empty_response")
    severity = str(data.get("severity") or "").lower()
    if severity not in SEVERITIES:
        severity = fallback_severity(rating)
    return IssueClassification(
        is_issue=bool(data.get("isIssue", data.get("is_issue", True))),
        severity=severity,
        category=(str(data.get("category") or "other").strip() or "other")[:64],
        summary=str(data.get("summary") or "").strip(),
    )


def record_issue_for_feedback(
    db: Session,
    feedback_id: str,
    classifier: Callable[[str, int | None], IssueClassification] | None = None,
) -> Issue | None:
    """Create the issue for a low-rated feedback answer. Classifier failures fall back to rating-based triage."""
    fb = db.execute(
        select(FeedbackRequest)
        .where(FeedbackRequest.id == feedback_id)
        .options(joinedload(FeedbackRequest.visit))
    ).scalar_one_or_none()
    if not fb or fb.rating is None or fb.visit is None:
        return None
    existing = db.execute(select(Issue).where(Issue.feedback_request_id == fb.id)).scalar_one_or_none()
    if existing:
        return existing

    text = (fb.comment or "").strip()
    result: IssueClassification | None = None
    if text:
        try:
            result = (classifier or classify)(text, fb.rating)
        except Exception as e:
            logger.warning("issue_classification_failed feedback=%s error=%s", fb.id, str(e)[:200])
    if result is not None and not result.is_issue:
        logger.info("feedback=%s rating=%s classified as not an issue", fb.id, fb.rating)
        return None
    if result is None:
        result = IssueClassification(
            is_issue=True,
            severity=fallback_severity(fb.rating),
            category="uncategorized",
            summary="",
        )
    issue = Issue(
        customer_id=fb.visit.customer_id,
        feedback_request_id=fb.id,
        status="open",
        severity=result.severity,
        category=result.category,
        summary=result.summary or f"Low rating ({fb.rating}/10)",
        details=text or None,
    )
    db.add(issue)
    db.commit()
    db.refresh(issue)
    logger.info("issue created id=%s feedback=%s severity=%s", issue.id, fb.id, issue.severity)
    return issue


def list_open_issues(db: Session) -> list[Issue]:
    severity_rank = case({"high": 0, "medium": 1, "low": 2}, value=Issue.severity, else_=3)
    q = (
        select(Issue)
        .where(Issue.status.in_(("open", "in_progress")))
        .options(joinedload(Issue.customer), joinedload(Issue.feedback_request))
        .order_by(severity_rank, Issue.created_at.desc())
    )
    return list(db.execute(q).scalars().all())


def update_issue(db: Session, issue_id: int, status: str | None = None, owner_response: str | None = None) -> Issue:
    issue = db.get(Issue, issue_id)
    if not issue:
        raise LookupError("Issue not found")
    if status is not None:
        if status not in STATUSES:
            raise ValueError(f"status must be one of {', '.join(STATUSES)}")
        issue.status = status
        issue.resolved_at = datetime.utcnow() if status == "resolved" else None
    if owner_response is not None:
        issue.owner_response = owner_response.strip() or None
    db.commit()
    db.refresh(issue)
    return issue
