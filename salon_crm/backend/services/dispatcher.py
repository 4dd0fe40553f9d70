"""One pass over pending outbound messages of a single kind.

A run selects pending messages that are due, re-checks eligibility, renders
the body, hands it to the SMS transport and moves every processed message out
of `pending` exactly once (to `sent` or `failed`). A failure on one message
never stops the run; only a failure to select candidates does. Re-running
right after a finished run is a no-op because nothing is left in `pending`.
Failed messages are not retried.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_crm.backend.services.business_settings import DispatchConfig
from salon_crm.backend.services.transport import DeliveryError, SmsTransport

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"

_REASON_MAX = 255


@dataclass
class OutboundSms:
    destination: str
    body: str


@dataclass(frozen=True)
class MessageKind:
    """Everything that differs between feedback and winback dispatch."""

    name: str
    model: type
    select_due: Callable[[Session, datetime, DispatchConfig], list]
    check_eligibility: Callable[[Any], str | None]
    render: Callable[[Session, Any, datetime, DispatchConfig], OutboundSms]


@dataclass
class DispatchSummary:
    kind: str
    total_candidates: int = 0
    sent_count: int = 0
    failed_count: int = 0
    ineligible_count: int = 0
    unrecorded_count: int = 0  # delivered, but the status update did not land
    unrecorded_failed_count: int = 0  # failure detected, but the row is still pending
    skipped: str | None = None

    def as_response(self) -> dict:
        out = {
            "success": True,
            "sentCount": self.sent_count,
            "failedCount": self.failed_count,
            "totalProcessed": self.total_candidates,
        }
        if self.skipped:
            out["skipped"] = self.skipped
        return out


class Dispatcher:
    def __init__(
        self,
        db: Session,
        kind: MessageKind,
        transport: SmsTransport,
        config: DispatchConfig,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.kind = kind
        self.transport = transport
        self.config = config
        self.clock = clock

    def run(self) -> DispatchSummary:
        summary = DispatchSummary(kind=self.kind.name)
        now = self.clock()
        # Selection errors propagate: without candidates there is no run.
        candidates = list(self.kind.select_due(self.db, now, self.config))
        summary.total_candidates = len(candidates)
        logger.info("dispatch kind=%s candidates=%s", self.kind.name, len(candidates))
        for candidate in candidates:
            self._process(candidate, now, summary)
        logger.info(
            "dispatch kind=%s done total=%s sent=%s failed=%s ineligible=%s unrecorded=%s unrecorded_failed=%s",
            self.kind.name,
            summary.total_candidates,
            summary.sent_count,
            summary.failed_count,
            summary.ineligible_count,
            summary.unrecorded_count,
            summary.unrecorded_failed_count,
        )
        return summary

    def _process(self, candidate: Any, now: datetime, summary: DispatchSummary) -> None:
        intent_id = candidate.id
        try:
            reason = self.kind.check_eligibility(candidate)
        except Exception as e:
            logger.exception("dispatch kind=%s id=%s eligibility_check_failed", self.kind.name, intent_id)
            if isinstance(e, SQLAlchemyError):
                self.db.rollback()
            reason = "eligibility_error"
        if reason:
            logger.info("dispatch kind=%s id=%s ineligible reason=%s", self.kind.name, intent_id, reason)
            summary.ineligible_count += 1
            self._fail(intent_id, reason, summary)
            return

        try:
            sms = self.kind.render(self.db, candidate, now, self.config)
        except Exception as e:
            logger.exception("dispatch kind=%s id=%s render_failed", self.kind.name, intent_id)
            if isinstance(e, SQLAlchemyError):
                # A failed query leaves the transaction unusable on Postgres.
                self.db.rollback()
            self._fail(intent_id, f"render_error: {e}", summary)
            return

        try:
            message_id = self.transport.send(sms.destination, sms.body)
        except DeliveryError as e:
            logger.warning("dispatch kind=%s id=%s delivery_failed reason=%s", self.kind.name, intent_id, e)
            self._fail(intent_id, f"delivery_error: {e}", summary)
            return
        except Exception as e:
            logger.exception("dispatch kind=%s id=%s transport_crashed", self.kind.name, intent_id)
            self._fail(intent_id, f"delivery_error: {str(e)[:200] or type(e).__name__}", summary)
            return

        try:
            recorded = self._transition(
                intent_id,
                status=STATUS_SENT,
                sent_at=self.clock(),
                provider_message_id=(message_id or "")[:64] or None,
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.critical(
                "dispatch kind=%s id=%s delivered provider_id=%s but status update failed; "
                "message may be sent again on the next run",
                self.kind.name,
                intent_id,
                message_id,
                exc_info=True,
            )
            summary.unrecorded_count += 1
            return
        if not recorded:
            logger.critical(
                "dispatch kind=%s id=%s delivered provider_id=%s but it was no longer pending "
                "(overlapping run?)",
                self.kind.name,
                intent_id,
                message_id,
            )
            summary.unrecorded_count += 1
            return
        summary.sent_count += 1

    def _transition(self, intent_id: Any, **values: Any) -> bool:
        """Conditional write: only a still-pending row moves."""
        model = self.kind.model
        res = self.db.execute(
            update(model)
            .where(model.id == intent_id, model.status == STATUS_PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return res.rowcount == 1

    def _fail(self, intent_id: Any, reason: str, summary: DispatchSummary) -> None:
        if self._mark_failed(intent_id, reason):
            summary.failed_count += 1
        else:
            summary.unrecorded_failed_count += 1

    def _mark_failed(self, intent_id: Any, reason: str) -> bool:
        """True when the row moved to failed."""
        try:
            if self._transition(intent_id, status=STATUS_FAILED, failure_reason=reason[:_REASON_MAX]):
                return True
            logger.warning("dispatch kind=%s id=%s not pending anymore, failure not recorded", self.kind.name, intent_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("dispatch kind=%s id=%s failed to record failure reason=%s", self.kind.name, intent_id, reason)
        return False
