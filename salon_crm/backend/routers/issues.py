"""Owner: issue inbox."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from salon_crm.backend.auth import require_owner
from salon_crm.backend.deps import get_db
from salon_crm.backend.models.issue import Issue
from salon_crm.backend.services.issues import list_open_issues, update_issue

router = APIRouter(dependencies=[Depends(require_owner)])


class IssueUpdate(BaseModel):
    status: str | None = None
    owner_response: str | None = Field(None, alias="ownerResponse")


def _issue_out(issue: Issue) -> dict:
    fb = issue.feedback_request
    return {
        "id": issue.id,
        "createdAt": issue.created_at.isoformat() if issue.created_at else None,
        "status": issue.status,
        "severity": issue.severity,
        "category": issue.category,
        "summary": issue.summary,
        "details": issue.details,
        "ownerResponse": issue.owner_response,
        "customer": {
            "id": issue.customer.id,
            "name": issue.customer.name or "Anonymous",
            "phone": issue.customer.phone,
        },
        "rating": fb.rating if fb else None,
    }


@router.get("")
def issues_list(db: Session = Depends(get_db)):
    return {"issues": [_issue_out(i) for i in list_open_issues(db)]}


@router.patch("/{issue_id}")
def issues_update(issue_id: int, payload: IssueUpdate, db: Session = Depends(get_db)):
    try:
        issue = update_issue(db, issue_id, status=payload.status, owner_response=payload.owner_response)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"issue": _issue_out(issue)}
