"""
Tests for HierarchyService: single-primary invariant, location lifecycle
and explicit cascades.
"""
import pytest

from business_review.errors import ConflictError, NotFound, ValidationError
from business_review.models.business import Business
from business_review.models.location import BusinessLocation
from business_review.models.location_admin import LocationAdmin
from business_review.models.promotion import BusinessPromotion, PromotionClaim
from business_review.models.registration import RegistrationRequest
from business_review.services.hierarchy_service import HierarchyService
from business_review.services.location_admin_service import LocationAdminService
from business_review.services.promotion_service import PromotionService
from tests.helpers.factories import (
    approved_business,
    live_promotion,
    location_payload,
    new_uuid,
)


def _primaries(db, business_id):
    db.expire_all()
    return (
        db.query(BusinessLocation)
        .filter(BusinessLocation.business_id == business_id, BusinessLocation.is_primary.is_(True))
        .all()
    )


def _three_locations(db):
    business = approved_business(db)
    l1 = HierarchyService.get_primary_location(db, business.id)
    l2 = HierarchyService.add_location(db, business.id, location_payload("Branch Two"))
    l3 = HierarchyService.add_location(db, business.id, location_payload("Branch Three"))
    return business, l1, l2, l3


class TestAddLocation:

    def test_new_location_is_not_primary_by_default(self, db):
        business = approved_business(db)

        location = HierarchyService.add_location(db, business.id, location_payload())

        assert location.is_primary is False
        assert len(_primaries(db, business.id)) == 1

    def test_make_primary_moves_the_flag(self, db):
        business = approved_business(db)
        original = HierarchyService.get_primary_location(db, business.id)

        location = HierarchyService.add_location(db, business.id, location_payload(), make_primary=True)

        primaries = _primaries(db, business.id)
        assert [p.id for p in primaries] == [location.id]
        assert db.get(BusinessLocation, original.id).is_primary is False

    def test_first_active_location_becomes_primary(self, db):
        business, l1, l2, l3 = _three_locations(db)
        for location in (l1, l2, l3):
            HierarchyService.remove_location(db, location.id)
        assert _primaries(db, business.id) == []

        location = HierarchyService.add_location(db, business.id, location_payload("Fresh Start"))

        assert location.is_primary is True

    def test_duplicate_place_id_conflicts(self, db):
        business = approved_business(db)
        HierarchyService.add_location(db, business.id, location_payload(google_place_id="ChIJ-place-1"))

        with pytest.raises(ConflictError) as exc:
            HierarchyService.add_location(
                db, business.id, location_payload("Other", google_place_id="ChIJ-place-1"),
            )

        assert exc.value.field == "google_place_id"

    @pytest.mark.parametrize("overrides,field", [
        ({"location_name": "X"}, "location_name"),
        ({"formatted_address": "abc"}, "formatted_address"),
        ({"latitude": 91.0}, "latitude"),
        ({"longitude": -181.0}, "longitude"),
    ])
    def test_invalid_fields(self, db, overrides, field):
        business = approved_business(db)

        with pytest.raises(ValidationError) as exc:
            HierarchyService.add_location(db, business.id, location_payload(**overrides))

        assert exc.value.field == field

    def test_unknown_business(self, db):
        with pytest.raises(NotFound):
            HierarchyService.add_location(db, new_uuid(), location_payload())


class TestPrimaryInvariant:

    def test_remove_primary_promotes_oldest_remaining(self, db):
        business, l1, l2, l3 = _three_locations(db)

        primary = HierarchyService.remove_location(db, l1.id)

        assert primary.id == l2.id
        assert [p.id for p in _primaries(db, business.id)] == [l2.id]
        assert db.get(BusinessLocation, l1.id) is None

    def test_remove_non_primary_keeps_primary(self, db):
        business, l1, l2, l3 = _three_locations(db)

        primary = HierarchyService.remove_location(db, l2.id)

        assert primary.id == l1.id
        assert [p.id for p in _primaries(db, business.id)] == [l1.id]

    def test_remove_last_location_leaves_business_without_primary(self, db):
        business = approved_business(db)
        only = HierarchyService.get_primary_location(db, business.id)

        primary = HierarchyService.remove_location(db, only.id)

        assert primary is None
        assert db.get(Business, business.id) is not None
        assert HierarchyService.list_locations(db, business.id) == []

    def test_set_primary(self, db):
        business, l1, l2, l3 = _three_locations(db)

        HierarchyService.set_primary(db, business.id, l3.id)

        assert [p.id for p in _primaries(db, business.id)] == [l3.id]

    def test_set_primary_requires_location_of_business(self, db):
        business, l1, l2, l3 = _three_locations(db)
        other = approved_business(db, name="Other Business")

        with pytest.raises(NotFound):
            HierarchyService.set_primary(db, other.id, l2.id)
        assert [p.id for p in _primaries(db, business.id)] == [l1.id]

    def test_set_primary_refuses_inactive_location(self, db):
        business, l1, l2, l3 = _three_locations(db)
        HierarchyService.update_location(db, l2.id, {"is_active": False})

        with pytest.raises(NotFound):
            HierarchyService.set_primary(db, business.id, l2.id)

    def test_deactivating_primary_hands_flag_to_oldest_active(self, db):
        business, l1, l2, l3 = _three_locations(db)

        HierarchyService.update_location(db, l1.id, {"is_active": False})

        assert [p.id for p in _primaries(db, business.id)] == [l2.id]

    def test_reactivating_only_location_makes_it_primary(self, db):
        business = approved_business(db)
        only = HierarchyService.get_primary_location(db, business.id)
        HierarchyService.update_location(db, only.id, {"is_active": False})
        assert _primaries(db, business.id) == []

        HierarchyService.update_location(db, only.id, {"is_active": True})

        assert [p.id for p in _primaries(db, business.id)] == [only.id]

    def test_update_is_primary_routes_through_promotion(self, db):
        business, l1, l2, l3 = _three_locations(db)

        HierarchyService.update_location(db, l2.id, {"is_primary": True, "notes": "Flagship"})

        assert [p.id for p in _primaries(db, business.id)] == [l2.id]
        assert db.get(BusinessLocation, l2.id).notes == "Flagship"

    @pytest.mark.parametrize("field", ["location_name", "formatted_address", "is_active", "is_primary"])
    def test_null_for_required_location_field(self, db, field):
        business = approved_business(db)
        location = HierarchyService.get_primary_location(db, business.id)
        name = location.location_name

        with pytest.raises(ValidationError) as exc:
            HierarchyService.update_location(db, location.id, {field: None})

        assert exc.value.field == field
        db.expire_all()
        assert db.get(BusinessLocation, location.id).location_name == name
        assert [p.id for p in _primaries(db, business.id)] == [location.id]

    def test_list_locations_primary_first_then_oldest(self, db):
        business, l1, l2, l3 = _three_locations(db)
        HierarchyService.set_primary(db, business.id, l3.id)

        ordered = HierarchyService.list_locations(db, business.id)

        assert [loc.id for loc in ordered] == [l3.id, l1.id, l2.id]


class TestBusinesses:

    def test_update_business(self, db):
        business = approved_business(db)

        updated = HierarchyService.update_business(
            db, business.id, {"business_name": "Blue Door Roasters", "metadata": {"tier": "gold"}},
        )

        assert updated.business_name == "Blue Door Roasters"
        assert updated.metadata_json == {"tier": "gold"}

    def test_update_business_rejects_short_name(self, db):
        business = approved_business(db)

        with pytest.raises(ValidationError):
            HierarchyService.update_business(db, business.id, {"business_name": "ab"})

    @pytest.mark.parametrize("field", ["business_name", "category", "is_active"])
    def test_update_business_rejects_null_required_field(self, db, field):
        business = approved_business(db)

        with pytest.raises(ValidationError) as exc:
            HierarchyService.update_business(db, business.id, {field: None})

        assert exc.value.field == field
        db.expire_all()
        assert db.get(Business, business.id).is_active is True

    def test_deactivate_business(self, db):
        business = approved_business(db)

        assert HierarchyService.deactivate_business(db, business.id).is_active is False

    def test_list_businesses_for_user(self, db):
        owner = new_uuid()
        approved_business(db, user_id=owner, name="First Shop")
        approved_business(db, user_id=owner, name="Second Shop")
        approved_business(db, name="Not Mine")

        assert len(HierarchyService.list_businesses_for_user(db, owner)) == 2

    def test_delete_business_cascades(self, db):
        business, l1, l2, l3 = _three_locations(db)
        promotion = live_promotion(db, l2.id)
        PromotionService.record_claim(db, promotion.id, new_uuid())
        LocationAdminService.grant(db, l3.id, new_uuid(), "staff", "staff@example.com", "staffer")
        registration_id = business.registration_id

        HierarchyService.delete_business(db, business.id)

        db.expire_all()
        assert db.query(Business).count() == 0
        assert db.query(BusinessLocation).count() == 0
        assert db.query(BusinessPromotion).count() == 0
        assert db.query(PromotionClaim).count() == 0
        assert db.query(LocationAdmin).count() == 0
        assert db.get(RegistrationRequest, registration_id).business_id is None

    def test_remove_location_cascades_to_its_children_only(self, db):
        business, l1, l2, l3 = _three_locations(db)
        doomed = live_promotion(db, l2.id)
        kept = live_promotion(db, l3.id)
        LocationAdminService.grant(db, l2.id, new_uuid(), "manager", "m@example.com", "manager")

        HierarchyService.remove_location(db, l2.id)

        db.expire_all()
        assert db.get(BusinessPromotion, doomed.id) is None
        assert db.get(BusinessPromotion, kept.id) is not None
        assert db.query(LocationAdmin).filter(LocationAdmin.location_id == l2.id).count() == 0

    def test_remove_unknown_location(self, db):
        with pytest.raises(NotFound):
            HierarchyService.remove_location(db, new_uuid())
