"""Load intake and shipper load views."""

from datetime import timedelta

import pytest

from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models import BidStatus, Capacity, CarrierRating, LoadStatus, VehicleType
from app.schemas.common import LocationIn
from app.schemas.load import LoadCreate
from app.services.loads import create_load, get_shipper_load_detail, list_shipper_loads


@pytest.fixture
def load_body(now):
    def _body(**overrides) -> LoadCreate:
        fields = dict(
            pickup_location=LocationIn(street="12 MIDC Road", city="Pune", state="Maharashtra", pincode="411019"),
            delivery_location=LocationIn(street="4 Port Road", city="Mumbai", state="Maharashtra", pincode=400001),
            material=" Steel coils ",
            weight_in_tons=9,
            required_vehicle_types=["open_body", "CLOSED_CONTAINER", "OPEN_BODY"],
            budget_price=45000,
            bidding_deadline=now + timedelta(hours=6),
            pickup_date=now + timedelta(days=1),
            expected_delivery_date=now + timedelta(days=3),
        )
        fields.update(overrides)
        return LoadCreate(**fields)

    return _body


@pytest.mark.unit
class TestCreateLoad:

    async def test_posts_a_created_load(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()

        load = await create_load(db_session, shipper.id, load_body(), now)

        assert load.status == LoadStatus.CREATED
        assert load.material == "Steel coils"
        assert load.requirement == Capacity.tons(9)
        assert load.required_vehicle_types == ["OPEN_BODY", "CLOSED_CONTAINER"]
        assert load.delivery_location.pincode == "400001"

    async def test_tanker_load_uses_litres(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()

        load = await create_load(
            db_session, shipper.id,
            load_body(required_vehicle_types=["TANKER"], volume_in_litres=18000, weight_in_tons=0),
            now,
        )

        assert load.requirement == Capacity.litres(18000)

    async def test_tanker_cannot_be_mixed(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()
        with pytest.raises(InvalidStateError, match="TANKER cannot be combined"):
            await create_load(
                db_session, shipper.id,
                load_body(required_vehicle_types=["TANKER", "OPEN_BODY"], volume_in_litres=18000),
                now,
            )

    async def test_lcv_load_limit(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()
        with pytest.raises(InvalidStateError, match="LCV loads cannot exceed 3 tons"):
            await create_load(
                db_session, shipper.id,
                load_body(required_vehicle_types=["LCV"], weight_in_tons=4),
                now,
            )

    async def test_every_problem_reported(self, db_session, make_shipper, now):
        shipper = await make_shipper()
        body = LoadCreate(
            pickup_location=LocationIn(street="", city="Pune", state="MH", pincode="0123"),
            required_vehicle_types=["SPACESHIP"],
            budget_price=0,
            bidding_deadline=now + timedelta(days=2),
            pickup_date=now + timedelta(days=1),
        )

        with pytest.raises(InvalidStateError) as exc_info:
            await create_load(db_session, shipper.id, body, now)

        errors = exc_info.value.errors
        assert "Material is required" in errors
        assert "Invalid vehicle type 'SPACESHIP'" in errors
        assert "Budget price must be greater than 0" in errors
        assert "Pickup location street is required" in errors
        assert "Pickup location pincode must be a valid 6-digit number" in errors
        assert "Delivery location is required" in errors
        assert "Expected delivery date is required" in errors

    async def test_same_pickup_and_delivery(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()
        same = LocationIn(street="12 MIDC Road", city="Pune", state="Maharashtra", pincode="411019")
        with pytest.raises(InvalidStateError, match="cannot be the same"):
            await create_load(
                db_session, shipper.id,
                load_body(pickup_location=same, delivery_location=same),
                now,
            )

    async def test_schedule_must_be_ordered(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()
        with pytest.raises(InvalidStateError) as exc_info:
            await create_load(
                db_session, shipper.id,
                load_body(
                    bidding_deadline=now + timedelta(days=1),
                    pickup_date=now + timedelta(days=1),
                    expected_delivery_date=now + timedelta(hours=12),
                ),
                now,
            )
        assert "Bidding deadline must be before pickup date" in exc_info.value.errors
        assert "Pickup date must be before delivery date" in exc_info.value.errors

    async def test_small_clock_skew_tolerated(self, db_session, make_shipper, load_body, now):
        shipper = await make_shipper()
        load = await create_load(
            db_session, shipper.id,
            load_body(bidding_deadline=now - timedelta(minutes=2)),
            now,
        )
        assert load.bidding_deadline == now - timedelta(minutes=2)

        with pytest.raises(InvalidStateError, match="Bidding deadline cannot be in the past"):
            await create_load(
                db_session, shipper.id,
                load_body(bidding_deadline=now - timedelta(hours=1)),
                now,
            )


@pytest.mark.unit
class TestShipperLoads:

    async def test_counts_pending_bids_and_ratings(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, make_bid
    ):
        shipper = await make_shipper()
        carrier_a = await make_carrier()
        carrier_b = await make_carrier()
        open_load = await make_load(shipper)
        await make_bid(open_load, await make_vehicle(carrier_a))
        await make_bid(open_load, await make_vehicle(carrier_b))
        delivered = await make_load(
            shipper,
            status=LoadStatus.DELIVERED,
            selected_carrier_id=carrier_a.id,
        )
        db_session.add(CarrierRating(load_id=delivered.id, carrier_id=carrier_a.id, shipper_id=shipper.id, rating=5))
        await db_session.commit()

        rows = {row["load"].id: row for row in await list_shipper_loads(db_session, shipper.id)}

        assert rows[open_load.id]["bid_count"] == 2
        assert rows[open_load.id]["is_rated"] is False
        assert rows[delivered.id]["bid_count"] == 0
        assert rows[delivered.id]["is_rated"] is True

    async def test_status_filter_and_ownership(self, db_session, make_shipper, make_load):
        shipper = await make_shipper()
        other = await make_shipper()
        created = await make_load(shipper)
        await make_load(shipper, status=LoadStatus.ASSIGNED)
        await make_load(other)

        rows = await list_shipper_loads(db_session, shipper.id, LoadStatus.CREATED)

        assert [row["load"].id for row in rows] == [created.id]
        assert len(await list_shipper_loads(db_session, shipper.id)) == 2

    async def test_rejected_bids_not_counted(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, make_bid
    ):
        shipper = await make_shipper()
        load = await make_load(shipper)
        bid = await make_bid(load, await make_vehicle(await make_carrier()))
        bid.status = BidStatus.REJECTED
        await db_session.commit()

        (row,) = await list_shipper_loads(db_session, shipper.id)
        assert row["bid_count"] == 0


@pytest.mark.unit
class TestShipperLoadDetail:

    async def test_assigned_load_with_carrier_and_vehicle(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load
    ):
        shipper = await make_shipper()
        carrier = await make_carrier()
        vehicle = await make_vehicle(carrier, VehicleType.OPEN_BODY)
        load = await make_load(
            shipper,
            status=LoadStatus.ASSIGNED,
            selected_carrier_id=carrier.id,
            assigned_vehicle_id=vehicle.id,
        )

        found = await get_shipper_load_detail(db_session, shipper.id, load.id)

        assert found.selected_carrier.id == carrier.id
        assert found.assigned_vehicle.vehicle_number == vehicle.vehicle_number

    async def test_open_and_delivered_loads_have_no_detail(self, db_session, make_shipper, make_load):
        shipper = await make_shipper()
        open_load = await make_load(shipper)
        delivered = await make_load(shipper, status=LoadStatus.DELIVERED)

        for load in (open_load, delivered):
            with pytest.raises(ResourceNotFoundError):
                await get_shipper_load_detail(db_session, shipper.id, load.id)

    async def test_other_shipper(self, db_session, make_shipper, make_load):
        owner = await make_shipper()
        other = await make_shipper()
        load = await make_load(owner, status=LoadStatus.ASSIGNED)
        with pytest.raises(PermissionDeniedError):
            await get_shipper_load_detail(db_session, other.id, load.id)
