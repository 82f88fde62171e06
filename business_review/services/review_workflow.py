"""
Review Workflow Engine: drives registration status and the audit trail.

    approve            pending | under_review -> approved (approved -> approved is a no-op)
    reject             pending | under_review -> rejected
    suspend            under_review | approved -> suspended
    resume             suspended -> approved
    request_more_info  pending -> under_review, otherwise unchanged
    comment            unchanged

rejected is terminal: nothing, not even a comment, applies to it.

Every accepted action appends exactly one ReviewEvent in the same
transaction as the status change. Rejected actions (bad transition,
reject without reason) mutate nothing.
"""
import logging
from datetime import timedelta
from typing import Optional, List, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..core.clock import utcnow, monotonic_after
from ..core.transaction import unit_of_work
from ..core.uuid_type import new_id, parse_uuid
from ..errors import InvalidTransition, NotFound, ValidationError, ConflictError
from ..models.enums import RegistrationStatus, ReviewAction, parse_enum
from ..models.registration import RegistrationRequest, ReviewEvent
from .hierarchy_service import HierarchyService

logger = logging.getLogger(__name__)

S = RegistrationStatus
A = ReviewAction

# action -> {from_status: to_status}
TRANSITIONS: Dict[ReviewAction, Dict[RegistrationStatus, RegistrationStatus]] = {
    A.APPROVE: {
        S.PENDING: S.APPROVED,
        S.UNDER_REVIEW: S.APPROVED,
        S.APPROVED: S.APPROVED,  # idempotent re-approval
    },
    A.REJECT: {
        S.PENDING: S.REJECTED,
        S.UNDER_REVIEW: S.REJECTED,
    },
    A.SUSPEND: {
        S.UNDER_REVIEW: S.SUSPENDED,
        S.APPROVED: S.SUSPENDED,
    },
    A.RESUME: {
        S.SUSPENDED: S.APPROVED,
    },
    A.REQUEST_MORE_INFO: {
        S.PENDING: S.UNDER_REVIEW,
        S.UNDER_REVIEW: S.UNDER_REVIEW,
        S.APPROVED: S.APPROVED,
        S.SUSPENDED: S.SUSPENDED,
    },
    A.COMMENT: {
        S.PENDING: S.PENDING,
        S.UNDER_REVIEW: S.UNDER_REVIEW,
        S.APPROVED: S.APPROVED,
        S.SUSPENDED: S.SUSPENDED,
    },
}

QUEUE_STATUSES = (S.PENDING.value, S.UNDER_REVIEW.value)
DECISION_ACTIONS = (A.APPROVE.value, A.REJECT.value)


def next_status(current: RegistrationStatus, action: ReviewAction) -> RegistrationStatus:
    """Target status for `action`, or InvalidTransition naming both ends."""
    target = TRANSITIONS[action].get(current)
    if target is None:
        raise InvalidTransition(current.value, action.value)
    return target


class ReviewWorkflow:
    """Apply reviewer actions and answer review-queue queries."""

    @staticmethod
    def apply_action(
        db: Session,
        registration_id: str,
        action,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
        notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> RegistrationRequest:
        action = parse_enum(ReviewAction, action, "action")
        registration_id = parse_uuid(registration_id, "registration_id")
        if actor_id is not None:
            actor_id = parse_uuid(actor_id, "actor_id")
        rejection_reason = (rejection_reason or "").strip() or None
        notes = (notes or "").strip() or None
        if action == A.REJECT and not rejection_reason:
            raise ValidationError(
                "Rejection reason is required when rejecting a registration",
                field="rejection_reason",
            )
        reviewer_name = (actor_name or "").strip() or settings.default_reviewer_name

        with unit_of_work(db):
            registration = (
                db.query(RegistrationRequest)
                .filter(RegistrationRequest.id == registration_id)
                .with_for_update()
                .first()
            )
            if not registration:
                raise NotFound("Registration", registration_id)

            now = utcnow()
            # Compare-and-set on the prior status serializes concurrent actions.
            # A lost race already holds the write lock, so the re-read is current.
            for _ in range(2):
                current = RegistrationStatus(registration.status)
                target = next_status(current, action)
                claimed = (
                    db.query(RegistrationRequest)
                    .filter(
                        RegistrationRequest.id == registration_id,
                        RegistrationRequest.status == current.value,
                    )
                    .update(
                        {"status": target.value, "updated_at": now},
                        synchronize_session=False,
                    )
                )
                db.refresh(registration)
                if claimed == 1:
                    break
            else:
                raise ConflictError(
                    f"Registration {registration_id} changed concurrently, retry the action",
                    field="status",
                )

            registration.reviewer_id = actor_id
            registration.reviewer_name = reviewer_name
            if notes:
                registration.reviewer_notes = notes
            if action == A.REJECT:
                registration.rejection_reason = rejection_reason

            if target == S.APPROVED and not registration.business_id:
                HierarchyService.materialize_from_registration(
                    db, registration, granted_by=actor_id, granted_by_username=reviewer_name,
                )

            last_event_at = (
                db.query(func.max(ReviewEvent.created_at))
                .filter(ReviewEvent.registration_id == registration_id)
                .scalar()
            )
            db.add(ReviewEvent(
                id=new_id(),
                registration_id=registration_id,
                reviewer_id=actor_id,
                reviewer_name=reviewer_name,
                action=action.value,
                notes=notes,
                rejection_reason=rejection_reason if action == A.REJECT else None,
                created_at=monotonic_after(last_event_at, now),
            ))

        logger.info(
            f"Review action {action.value} on registration {registration_id}: "
            f"{current.value} -> {target.value} by {reviewer_name}"
        )
        return registration

    @staticmethod
    def list_pending(db: Session, limit: Optional[int] = None, offset: int = 0) -> List[RegistrationRequest]:
        """Registrations awaiting a decision, oldest submission first."""
        limit = settings.pending_page_default if limit is None else limit
        limit = max(1, min(int(limit), settings.pending_page_max))
        offset = max(0, int(offset))
        return (
            db.query(RegistrationRequest)
            .filter(RegistrationRequest.status.in_(QUEUE_STATUSES))
            .order_by(RegistrationRequest.submitted_at.asc(), RegistrationRequest.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def list_events(db: Session, registration_id: str) -> List[ReviewEvent]:
        registration_id = parse_uuid(registration_id, "registration_id")
        return (
            db.query(ReviewEvent)
            .filter(ReviewEvent.registration_id == registration_id)
            .order_by(ReviewEvent.created_at.asc())
            .all()
        )

    @staticmethod
    def get_stats(db: Session) -> Dict[str, Any]:
        """Counts per status, approval rate and mean time to decision."""
        counts = {status.value: 0 for status in RegistrationStatus}
        for status, count in (
            db.query(RegistrationRequest.status, func.count(RegistrationRequest.id))
            .group_by(RegistrationRequest.status)
            .all()
        ):
            counts[status] = count

        # First decision event per registration
        first_decision = (
            db.query(
                ReviewEvent.registration_id.label("registration_id"),
                func.min(ReviewEvent.created_at).label("decided_at"),
            )
            .filter(ReviewEvent.action.in_(DECISION_ACTIONS))
            .group_by(ReviewEvent.registration_id)
            .subquery()
        )
        rows = (
            db.query(RegistrationRequest.submitted_at, first_decision.c.decided_at)
            .join(first_decision, first_decision.c.registration_id == RegistrationRequest.id)
            .all()
        )
        durations = [(decided - submitted).total_seconds() for submitted, decided in rows]

        # A registration is approved or rejected at most once; later approve
        # events are idempotent re-approvals and are not counted again.
        first_by_action = (
            db.query(
                ReviewEvent.action.label("action"),
                func.min(ReviewEvent.created_at).label("decided_at"),
            )
            .filter(ReviewEvent.action.in_(DECISION_ACTIONS))
            .group_by(ReviewEvent.registration_id, ReviewEvent.action)
            .subquery()
        )
        since = utcnow() - timedelta(days=1)
        decided_today = dict(
            db.query(first_by_action.c.action, func.count())
            .filter(first_by_action.c.decided_at >= since)
            .group_by(first_by_action.c.action)
            .all()
        )

        approved, rejected = counts[S.APPROVED.value], counts[S.REJECTED.value]
        return {
            "total": sum(counts.values()),
            "by_status": counts,
            "pending": counts[S.PENDING.value],
            "under_review": counts[S.UNDER_REVIEW.value],
            "approved_today": decided_today.get(A.APPROVE.value, 0),
            "rejected_today": decided_today.get(A.REJECT.value, 0),
            "approval_rate": round(approved / (approved + rejected), 4) if approved + rejected else None,
            "mean_time_to_decision_s": round(sum(durations) / len(durations), 3) if durations else None,
        }
