"""
Tests for ReviewWorkflow: transitions, audit trail, materialization and stats.
"""
from datetime import timedelta

import pytest

from sqlalchemy.exc import OperationalError

from business_review.errors import InvalidTransition, StorageError, ValidationError, NotFound
from business_review.models.business import Business
from business_review.models.location import BusinessLocation
from business_review.models.location_admin import LocationAdmin
from business_review.models.registration import RegistrationRequest, ReviewEvent
from business_review.services.review_workflow import ReviewWorkflow, next_status
from business_review.models.enums import RegistrationStatus, ReviewAction
from tests.helpers.factories import REVIEWER_ID, new_uuid, submit_registration


def _act(db, registration, action, **kwargs):
    kwargs.setdefault("actor_id", REVIEWER_ID)
    kwargs.setdefault("actor_name", "Dana Reviewer")
    return ReviewWorkflow.apply_action(db, registration.id, action, **kwargs)


def _event_count(db, registration_id):
    return db.query(ReviewEvent).filter(ReviewEvent.registration_id == registration_id).count()


class TestTransitionTable:

    @pytest.mark.parametrize("current,action,expected", [
        ("pending", "approve", "approved"),
        ("under_review", "approve", "approved"),
        ("approved", "approve", "approved"),
        ("pending", "reject", "rejected"),
        ("under_review", "suspend", "suspended"),
        ("approved", "suspend", "suspended"),
        ("suspended", "resume", "approved"),
        ("pending", "request_more_info", "under_review"),
        ("approved", "request_more_info", "approved"),
        ("suspended", "comment", "suspended"),
    ])
    def test_allowed(self, current, action, expected):
        assert next_status(RegistrationStatus(current), ReviewAction(action)).value == expected

    @pytest.mark.parametrize("current,action", [
        ("pending", "suspend"),
        ("pending", "resume"),
        ("approved", "reject"),
        ("suspended", "approve"),
        ("rejected", "approve"),
        ("rejected", "comment"),
        ("rejected", "request_more_info"),
    ])
    def test_refused(self, current, action):
        with pytest.raises(InvalidTransition) as exc:
            next_status(RegistrationStatus(current), ReviewAction(action))

        assert exc.value.current == current
        assert exc.value.attempted == action


class TestApplyAction:

    def test_approve_materializes_business_with_primary_location(self, db):
        registration = submit_registration(db)

        registration = _act(db, registration, "approve", notes="Documents verified")

        assert registration.status == "approved"
        assert registration.business_id is not None
        assert registration.reviewer_id == REVIEWER_ID
        assert registration.reviewer_name == "Dana Reviewer"
        assert registration.reviewer_notes == "Documents verified"

        business = db.query(Business).filter(Business.id == registration.business_id).one()
        assert business.owner_user_id == registration.user_id
        assert business.business_name == registration.name
        assert business.category == registration.category
        assert business.registration_id == registration.id

        locations = db.query(BusinessLocation).filter(BusinessLocation.business_id == business.id).all()
        assert len(locations) == 1
        assert locations[0].is_primary is True
        assert locations[0].formatted_address == registration.address

        owner = db.query(LocationAdmin).filter(LocationAdmin.location_id == locations[0].id).one()
        assert owner.role == "owner"
        assert owner.user_id == registration.user_id
        assert owner.user_email == registration.owner_email

    def test_reapproval_is_idempotent(self, db):
        registration = submit_registration(db)
        first = _act(db, registration, "approve")
        business_id = first.business_id

        again = _act(db, registration, "approve")

        assert again.business_id == business_id
        assert db.query(Business).count() == 1
        assert db.query(BusinessLocation).count() == 1
        assert _event_count(db, registration.id) == 2

    def test_failed_materialization_rolls_back_approval(self, db, monkeypatch):
        registration = submit_registration(db)

        def failing_grant(**kwargs):
            raise OperationalError("INSERT INTO business_location_admins", {}, Exception("disk I/O error"))

        # Business and location are already flushed when the owner grant fails
        monkeypatch.setattr("business_review.services.hierarchy_service.LocationAdmin", failing_grant)

        with pytest.raises(StorageError):
            _act(db, registration, "approve")

        db.expire_all()
        row = db.get(RegistrationRequest, registration.id)
        assert row.status == "pending"
        assert row.business_id is None
        assert db.query(Business).count() == 0
        assert db.query(BusinessLocation).count() == 0
        assert _event_count(db, registration.id) == 0

    def test_reject_requires_reason_and_appends_nothing(self, db):
        registration = submit_registration(db)

        for reason in (None, "", "   "):
            with pytest.raises(ValidationError) as exc:
                _act(db, registration, "reject", rejection_reason=reason)
            assert exc.value.field == "rejection_reason"

        db.expire_all()
        assert db.get(RegistrationRequest, registration.id).status == "pending"
        assert _event_count(db, registration.id) == 0

    def test_reject_stores_reason(self, db):
        registration = submit_registration(db)

        registration = _act(db, registration, "reject", rejection_reason="Documents unreadable")

        assert registration.status == "rejected"
        assert registration.rejection_reason == "Documents unreadable"
        assert registration.business_id is None
        events = ReviewWorkflow.list_events(db, registration.id)
        assert events[-1].rejection_reason == "Documents unreadable"

    def test_suspend_on_pending_fails_without_side_effects(self, db):
        registration = submit_registration(db)

        with pytest.raises(InvalidTransition) as exc:
            _act(db, registration, "suspend")

        assert exc.value.current == "pending"
        assert exc.value.attempted == "suspend"
        db.expire_all()
        assert db.get(RegistrationRequest, registration.id).status == "pending"
        assert _event_count(db, registration.id) == 0

    def test_comment_and_request_more_info(self, db):
        registration = submit_registration(db)

        registration = _act(db, registration, "comment", notes="Looks fine so far")
        assert registration.status == "pending"
        assert registration.reviewer_notes == "Looks fine so far"

        registration = _act(db, registration, "request_more_info", notes="Need a utility bill")
        assert registration.status == "under_review"

        registration = _act(db, registration, "request_more_info")
        assert registration.status == "under_review"
        assert _event_count(db, registration.id) == 3

    def test_suspend_and_resume_keep_single_business(self, db):
        registration = submit_registration(db)
        _act(db, registration, "approve")

        suspended = _act(db, registration, "suspend", notes="Complaint received")
        assert suspended.status == "suspended"

        resumed = _act(db, registration, "resume")
        assert resumed.status == "approved"
        assert db.query(Business).count() == 1

    def test_events_match_call_order(self, db):
        registration = submit_registration(db)
        actions = ["comment", "request_more_info", "comment", "approve", "suspend", "resume", "comment"]

        for action in actions:
            _act(db, registration, action)

        events = ReviewWorkflow.list_events(db, registration.id)
        assert [e.action for e in events] == actions
        stamps = [e.created_at for e in events]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)

    def test_blank_reviewer_name_uses_default(self, db):
        registration = submit_registration(db)

        registration = _act(db, registration, "comment", actor_name="  ")

        assert registration.reviewer_name == "Admin"

    def test_unknown_action_is_validation_error(self, db):
        registration = submit_registration(db)

        with pytest.raises(ValidationError) as exc:
            _act(db, registration, "escalate")

        assert exc.value.field == "action"

    def test_unknown_registration(self, db):
        with pytest.raises(NotFound):
            ReviewWorkflow.apply_action(db, new_uuid(), "approve", actor_id=REVIEWER_ID)


class TestQueries:

    def test_pending_queue_oldest_first_and_paginated(self, db):
        first = submit_registration(db, name="First Shop")
        second = submit_registration(db, name="Second Shop")
        third = submit_registration(db, name="Third Shop")
        decided = submit_registration(db, name="Decided Shop")
        _act(db, second, "request_more_info")
        _act(db, decided, "approve")

        queue = ReviewWorkflow.list_pending(db)
        assert [r.id for r in queue] == [first.id, second.id, third.id]

        page = ReviewWorkflow.list_pending(db, limit=1, offset=1)
        assert [r.id for r in page] == [second.id]

    def test_pending_limit_is_clamped(self, db):
        for i in range(3):
            submit_registration(db, name=f"Shop number {i}")

        assert len(ReviewWorkflow.list_pending(db, limit=0)) == 1
        assert len(ReviewWorkflow.list_pending(db, limit=10_000, offset=-5)) == 3

    def test_stats(self, db):
        approved = submit_registration(db, name="Approved Shop")
        rejected = submit_registration(db, name="Rejected Shop")
        submit_registration(db, name="Waiting Shop")
        _act(db, approved, "approve")
        _act(db, rejected, "reject", rejection_reason="Duplicate")

        stats = ReviewWorkflow.get_stats(db)

        assert stats["total"] == 3
        assert stats["by_status"]["approved"] == 1
        assert stats["by_status"]["rejected"] == 1
        assert stats["pending"] == 1
        assert stats["approved_today"] == 1
        assert stats["rejected_today"] == 1
        assert stats["approval_rate"] == 0.5
        assert stats["mean_time_to_decision_s"] >= 0

    def test_reapproval_is_not_counted_twice(self, db):
        registration = submit_registration(db)
        _act(db, registration, "approve")
        _act(db, registration, "approve")

        stats = ReviewWorkflow.get_stats(db)

        assert _event_count(db, registration.id) == 2
        assert stats["approved_today"] == 1

    def test_stats_on_empty_store(self, db):
        stats = ReviewWorkflow.get_stats(db)

        assert stats["total"] == 0
        assert stats["approval_rate"] is None
        assert stats["mean_time_to_decision_s"] is None

    def test_decision_time_measured_from_submission(self, db):
        registration = submit_registration(db)
        row = db.get(RegistrationRequest, registration.id)
        row.submitted_at = row.submitted_at - timedelta(hours=2)
        db.commit()

        _act(db, registration, "approve")

        assert ReviewWorkflow.get_stats(db)["mean_time_to_decision_s"] >= 7200
