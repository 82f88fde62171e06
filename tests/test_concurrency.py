"""
Race tests: competing operations on separate sessions in threads against
the same database file.
"""
import threading
from typing import Callable, List

from business_review.errors import ClaimRejected, NotFound
from business_review.models.business import Business
from business_review.models.location import BusinessLocation
from business_review.models.promotion import BusinessPromotion, PromotionClaim
from business_review.models.registration import ReviewEvent
from business_review.services.hierarchy_service import HierarchyService
from business_review.services.promotion_service import PromotionService
from business_review.services.review_workflow import ReviewWorkflow
from tests.helpers.factories import (
    REVIEWER_ID,
    approved_business,
    live_promotion,
    location_payload,
    new_uuid,
    submit_registration,
)


def _run_concurrently(session_factory, calls: List[Callable]) -> List[object]:
    """Run each call(db) in its own thread and session; returns results or raised exceptions."""
    barrier = threading.Barrier(len(calls))
    results: List[object] = [None] * len(calls)

    def worker(index, call):
        db = session_factory()
        try:
            barrier.wait()
            results[index] = call(db)
        except Exception as e:
            results[index] = e
        finally:
            db.close()

    threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


class TestConcurrentClaims:

    def test_two_claimants_one_slot(self, db, session_factory):
        business = approved_business(db)
        location = HierarchyService.get_primary_location(db, business.id)
        promotion = live_promotion(db, location.id, max_claims=1)
        promotion_id = promotion.id
        user_a, user_b = new_uuid(), new_uuid()

        results = _run_concurrently(session_factory, [
            lambda s: PromotionService.record_claim(s, promotion_id, user_a).total_claims,
            lambda s: PromotionService.record_claim(s, promotion_id, user_b).total_claims,
        ])

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1, results
        assert isinstance(failures[0], ClaimRejected)
        assert failures[0].reason == "exhausted"
        db.expire_all()
        assert db.get(BusinessPromotion, promotion_id).total_claims == 1
        assert db.query(PromotionClaim).count() == 1

    def test_many_claimants_never_exceed_max(self, db, session_factory):
        business = approved_business(db)
        location = HierarchyService.get_primary_location(db, business.id)
        promotion_id = live_promotion(db, location.id, max_claims=3).id

        results = _run_concurrently(session_factory, [
            (lambda s: PromotionService.record_claim(s, promotion_id, new_uuid()).id)
            for _ in range(8)
        ])

        successes = [r for r in results if not isinstance(r, Exception)]
        rejections = [r for r in results if isinstance(r, ClaimRejected)]
        assert len(successes) == 3, results
        assert len(rejections) == 5
        db.expire_all()
        assert db.get(BusinessPromotion, promotion_id).total_claims == 3

    def test_same_user_respects_per_user_limit(self, db, session_factory):
        business = approved_business(db)
        location = HierarchyService.get_primary_location(db, business.id)
        promotion_id = live_promotion(db, location.id, per_user_limit=1).id
        user_id = new_uuid()

        results = _run_concurrently(session_factory, [
            (lambda s: PromotionService.record_claim(s, promotion_id, user_id).id)
            for _ in range(4)
        ])

        rejections = [r for r in results if isinstance(r, ClaimRejected)]
        assert len(rejections) == 3, results
        assert {r.reason for r in rejections} == {"per_user_limit"}
        db.expire_all()
        assert db.get(BusinessPromotion, promotion_id).total_claims == 1


class TestConcurrentPrimary:

    def _primaries(self, db, business_id):
        db.expire_all()
        return (
            db.query(BusinessLocation)
            .filter(BusinessLocation.business_id == business_id, BusinessLocation.is_primary.is_(True))
            .all()
        )

    def test_set_primary_races_remove_of_target(self, db, session_factory):
        business = approved_business(db)
        business_id = business.id
        l2 = HierarchyService.add_location(db, business_id, location_payload("Branch Two")).id
        HierarchyService.add_location(db, business_id, location_payload("Branch Three"))

        results = _run_concurrently(session_factory, [
            lambda s: HierarchyService.set_primary(s, business_id, l2).id,
            lambda s: HierarchyService.remove_location(s, l2),
        ])

        set_result = results[0]
        assert set_result == l2 or isinstance(set_result, NotFound), results
        assert not isinstance(results[1], Exception), results
        assert len(self._primaries(db, business_id)) == 1

    def test_set_primary_races_remove_of_primary(self, db, session_factory):
        business = approved_business(db)
        business_id = business.id
        l1 = HierarchyService.get_primary_location(db, business_id).id
        l2 = HierarchyService.add_location(db, business_id, location_payload("Branch Two")).id
        l3 = HierarchyService.add_location(db, business_id, location_payload("Branch Three")).id

        results = _run_concurrently(session_factory, [
            lambda s: HierarchyService.set_primary(s, business_id, l3).id,
            lambda s: HierarchyService.remove_location(s, l1),
        ])

        assert not any(isinstance(r, Exception) for r in results), results
        primaries = self._primaries(db, business_id)
        assert len(primaries) == 1
        assert primaries[0].id in (l2, l3)

    def test_parallel_adds_with_make_primary(self, db, session_factory):
        business = approved_business(db)
        business_id = business.id

        results = _run_concurrently(session_factory, [
            (lambda s, i=i: HierarchyService.add_location(
                s, business_id, location_payload(f"Branch {i}"), make_primary=True,
            ).id)
            for i in range(4)
        ])

        assert not any(isinstance(r, Exception) for r in results), results
        assert len(self._primaries(db, business_id)) == 1


class TestConcurrentReview:

    def test_double_approval_materializes_once(self, db, session_factory):
        registration_id = submit_registration(db).id

        results = _run_concurrently(session_factory, [
            lambda s: ReviewWorkflow.apply_action(s, registration_id, "approve", actor_id=REVIEWER_ID).status,
            lambda s: ReviewWorkflow.apply_action(s, registration_id, "approve", actor_id=REVIEWER_ID).status,
        ])

        assert results == ["approved", "approved"]
        db.expire_all()
        assert db.query(Business).count() == 1
        assert db.query(BusinessLocation).count() == 1
        assert db.query(ReviewEvent).filter(ReviewEvent.registration_id == registration_id).count() == 2
