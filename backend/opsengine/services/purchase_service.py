# Overview: Approval Workflow; two-stage review state machine for purchase requests.

"""
Purchase Request Approval Workflow

================================================================================
STATE MACHINE
================================================================================

    pending-supervisor --approve--> pending-executive --approve--> approved
            |                               |
            +------------reject-------------+-----------------> rejected

    pending-supervisor: needs SUPERVISE_PURCHASE_REQUEST to review
    pending-executive:  needs APPROVE_PURCHASE_REQUEST to review
    approved, rejected: terminal and absorbing

RULES:
1. Strictly forward-moving; no stage is skipped or revisited.
2. Each transition stamps exactly one approval slot (decision, decider,
   timestamp, note) and appends exactly one history row.
3. History rows are never edited or removed.
4. Each transition emits one notification and one purchase broadcast.

CONCURRENCY:
The request row carries version_id. Two reviewers racing on the same
request both read the same state; only the first commit wins. The other
gets ConcurrentModification and must re-read before trying again, at
which point the state machine decides (usually InvalidStateTransition).
Reviews are deliberately not auto-retried: a retried supervisor approval
could otherwise land as an executive decision.
================================================================================
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, OperationalError

from ..errors import InvalidRequest, InvalidStateTransition, ItemNotFound, OperationsError, RequestNotFound
from ..extensions import db
from ..models import InventoryItem, PurchaseRequest, PurchaseRequestEvent, PurchaseRequestLine
from ..permissions import Capability
from ..time_utils import utcnow
from ..validation import normalize_purchase_lines, normalize_review_decision, parse_date_field
from .broadcast_service import SnapshotPublisher, Topic
from .concurrency import commit_or_conflict, lock_for_update, run_with_retry
from .permission_service import PrincipalContext, require_capability

logger = logging.getLogger(__name__)


PENDING_SUPERVISOR = "pending-supervisor"
PENDING_EXECUTIVE = "pending-executive"
APPROVED = "approved"
REJECTED = "rejected"

VALID_STATUSES = {PENDING_SUPERVISOR, PENDING_EXECUTIVE, APPROVED, REJECTED}
TERMINAL_STATUSES = {APPROVED, REJECTED}
PENDING_STATUSES = (PENDING_SUPERVISOR, PENDING_EXECUTIVE)

VALID_TRANSITIONS = {
    (PENDING_SUPERVISOR, PENDING_EXECUTIVE),
    (PENDING_SUPERVISOR, REJECTED),
    (PENDING_EXECUTIVE, APPROVED),
    (PENDING_EXECUTIVE, REJECTED),
}

CODE_PREFIX = "PR"
CODE_PAD = 4
DEFAULT_REASON = "Operational requirement"


@dataclass(frozen=True)
class ReviewStage:
    """One reviewer slot: who may act, and where approval leads."""
    slot: str
    status: str
    capability: str
    approved_status: str
    history_action: str
    notification_title: str
    denied_message: str
    approve_severity: str


REVIEW_STAGES = {
    PENDING_SUPERVISOR: ReviewStage(
        slot="supervisor",
        status=PENDING_SUPERVISOR,
        capability=Capability.SUPERVISE_PURCHASE_REQUEST,
        approved_status=PENDING_EXECUTIVE,
        history_action="supervisor-review",
        notification_title="Supervisor review completed",
        denied_message="Supervisor approval required.",
        approve_severity="info",
    ),
    PENDING_EXECUTIVE: ReviewStage(
        slot="executive",
        status=PENDING_EXECUTIVE,
        capability=Capability.APPROVE_PURCHASE_REQUEST,
        approved_status=APPROVED,
        history_action="executive-review",
        notification_title="Executive decision recorded",
        denied_message="Executive approval required.",
        approve_severity="success",
    ),
}


def can_transition(from_status: str, to_status: str) -> bool:
    """True only for the four forward edges of the state machine."""
    for status in (from_status, to_status):
        if status not in VALID_STATUSES:
            raise InvalidRequest(
                f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
            )
    return (from_status, to_status) in VALID_TRANSITIONS


def format_request_code(number: int) -> str:
    return f"{CODE_PREFIX}-{number:0{CODE_PAD}d}"


def next_request_code() -> str:
    """
    Last issued code plus one. Codes with an unreadable suffix restart
    the count at 1 rather than failing submission.
    """
    last = (
        db.session.query(PurchaseRequest.code)
        .order_by(PurchaseRequest.id.desc())
        .first()
    )
    if last is None:
        return format_request_code(1)
    suffix = last[0].rsplit("-", 1)[-1]
    if not suffix.isdigit():
        return format_request_code(1)
    return format_request_code(int(suffix) + 1)


def get_request(request_id: int) -> PurchaseRequest:
    request = db.session.get(PurchaseRequest, request_id)
    if request is None:
        raise RequestNotFound(f"Purchase request {request_id} not found")
    return request


def can_review_any(principal: PrincipalContext) -> bool:
    return principal.can(Capability.SUPERVISE_PURCHASE_REQUEST) or principal.can(Capability.APPROVE_PURCHASE_REQUEST)


def list_requests(*, requested_by_id: str | None = None, status: str | None = None) -> list[PurchaseRequest]:
    q = db.session.query(PurchaseRequest)
    if requested_by_id is not None:
        q = q.filter(PurchaseRequest.requested_by_id == requested_by_id)
    if status is not None:
        if status not in VALID_STATUSES:
            raise InvalidRequest(f"status must be one of: {', '.join(sorted(VALID_STATUSES))}")
        q = q.filter(PurchaseRequest.status == status)
    return q.order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.id.desc()).all()


def list_pending() -> list[PurchaseRequest]:
    return (
        db.session.query(PurchaseRequest)
        .filter(PurchaseRequest.status.in_(PENDING_STATUSES))
        .order_by(PurchaseRequest.created_at, PurchaseRequest.id)
        .all()
    )


def purchase_snapshot(principal: PrincipalContext | None = None) -> dict:
    """
    Request list plus counts. Without a principal (broadcast) the full
    list is returned; requesters without review rights see only their own.
    """
    owner = None
    if principal is not None and not can_review_any(principal):
        owner = principal.id
    requests = list_requests(requested_by_id=owner)
    return {
        "requests": [r.to_dict() for r in requests],
        "pending": sum(1 for r in requests if r.status in PENDING_STATUSES),
        "approved": sum(1 for r in requests if r.status == APPROVED),
        "rejected": sum(1 for r in requests if r.status == REJECTED),
    }


class ApprovalWorkflow:
    """Creates purchase requests and advances them through review."""

    def __init__(self, publisher: SnapshotPublisher, notifications):
        self.publisher = publisher
        self.notifications = notifications

    def submit(
        self,
        *,
        principal: PrincipalContext,
        items,
        reason: str | None = None,
        needed_by=None,
    ) -> PurchaseRequest:
        require_capability(principal, Capability.CREATE_PURCHASE_REQUEST)

        lines = normalize_purchase_lines(items)
        reason = (reason or "").strip() or DEFAULT_REASON
        needed_by_date = parse_date_field(needed_by, "needed_by")
        for line in lines:
            if line["item_id"] is not None and db.session.get(InventoryItem, line["item_id"]) is None:
                raise ItemNotFound(f"Inventory item {line['item_id']} not found")

        def _op() -> PurchaseRequest:
            now = utcnow()
            request = PurchaseRequest(
                code=next_request_code(),
                requested_by_id=principal.id,
                requested_by_name=principal.name,
                reason=reason,
                needed_by=needed_by_date,
                status=PENDING_SUPERVISOR,
                supervisor_decision="pending",
                executive_decision="pending",
                created_at=now,
            )
            for line in lines:
                request.lines.append(PurchaseRequestLine(**line))
            db.session.add(request)
            db.session.flush()

            db.session.add(PurchaseRequestEvent(
                request_id=request.id,
                action="created",
                actor=principal.name,
                message=f"Request created by {principal.name}.",
                occurred_at=now,
            ))
            db.session.commit()
            return request

        # A concurrent submit can take the same code; re-read and try again
        request = run_with_retry(_op, retry_on=(IntegrityError, OperationalError))
        logger.info("Purchase request %s submitted by %s", request.code, principal.id)

        self.notifications.notify_safely(
            "Purchase request submitted",
            f"{principal.name} submitted purchase request {request.code}.",
            "info",
            {"request_id": request.id},
        )
        self.publisher.push(Topic.PURCHASE, Topic.DASHBOARD)
        return request

    def _check_review(self, request_id: int, principal: PrincipalContext, decision: str, expected_status: str | None):
        request = lock_for_update(
            db.session.query(PurchaseRequest).filter(PurchaseRequest.id == request_id)
        ).first()
        if request is None:
            raise RequestNotFound(f"Purchase request {request_id} not found")

        stage = REVIEW_STAGES.get(request.status)
        if stage is None:
            raise InvalidStateTransition(
                f"Request {request.code} is {request.status} and is no longer pending review."
            )
        if expected_status is not None and expected_status != request.status:
            raise InvalidStateTransition(
                f"Request {request.code} is now {request.status}; reload it before reviewing."
            )

        require_capability(principal, stage.capability, stage.denied_message)
        decision = normalize_review_decision(decision)

        new_status = stage.approved_status if decision == "approve" else REJECTED
        if not can_transition(request.status, new_status):
            raise InvalidStateTransition(
                f"Cannot move request {request.code} from {request.status} to {new_status}."
            )
        return request, stage, new_status, decision

    def review(
        self,
        request_id: int,
        *,
        principal: PrincipalContext,
        decision: str,
        note: str | None = None,
        expected_status: str | None = None,
    ) -> PurchaseRequest:
        """
        Advance one stage. expected_status, when given, is the status the
        reviewer was looking at; a mismatch means someone else moved first.
        """
        try:
            request, stage, new_status, decision = self._check_review(request_id, principal, decision, expected_status)
        except OperationsError:
            # Release the row lock taken while checking
            db.session.rollback()
            raise

        now = utcnow()
        note = (note or "").strip() or None
        past = "approved" if decision == "approve" else "rejected"

        setattr(request, f"{stage.slot}_decision", past)
        setattr(request, f"{stage.slot}_by", principal.name)
        setattr(request, f"{stage.slot}_at", now)
        setattr(request, f"{stage.slot}_note", note)
        request.status = new_status

        db.session.add(PurchaseRequestEvent(
            request_id=request.id,
            action=stage.history_action,
            actor=principal.name,
            message=f"{principal.name} {past} at {stage.slot} stage.",
            occurred_at=now,
        ))
        commit_or_conflict(
            f"Request {request_id} was reviewed by someone else; reload it and try again."
        )

        logger.info(
            "Purchase request %s: %s -> %s by %s",
            request.code, stage.status, new_status, principal.id,
        )

        self.notifications.notify_safely(
            stage.notification_title,
            f"{request.code} {past} by {principal.name} at {stage.slot} stage.",
            stage.approve_severity if decision == "approve" else "error",
            {"request_id": request.id, "status": new_status},
        )
        self.publisher.push(Topic.PURCHASE, Topic.DASHBOARD)
        return request
