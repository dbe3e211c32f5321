"""Eligibility filter tests: the carrier load feed, vehicle matching and visibility."""

from datetime import timedelta

import pytest

from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models import Capacity, LoadStatus, VehicleStatus, VehicleType
from app.services import eligibility
from app.services.bidding import mark_not_interested


@pytest.mark.unit
class TestEligibleLoads:

    async def test_lists_open_loads_by_deadline(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        later = await make_load(shipper, bidding_deadline=now + timedelta(days=3))
        sooner = await make_load(shipper, bidding_deadline=now + timedelta(hours=2))

        loads = await eligibility.list_eligible_loads(db_session, carrier.id, now)

        assert [load.id for load in loads] == [sooner.id, later.id]

    async def test_hides_closed_and_assigned_loads(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        await make_load(
            shipper,
            bidding_deadline=now - timedelta(hours=1),
            pickup_date=now + timedelta(days=1),
        )
        await make_load(shipper, status=LoadStatus.ASSIGNED)
        visible = await make_load(shipper)

        loads = await eligibility.list_eligible_loads(db_session, carrier.id, now)

        assert [load.id for load in loads] == [visible.id]

    async def test_hides_loads_the_carrier_declined(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        other = await make_carrier()
        load = await make_load(shipper)

        await mark_not_interested(db_session, carrier.id, load.id, now)

        assert await eligibility.list_eligible_loads(db_session, carrier.id, now) == []
        other_feed = await eligibility.list_eligible_loads(db_session, other.id, now)
        assert [item.id for item in other_feed] == [load.id]

    async def test_hides_loads_the_carrier_bid_on(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, make_bid, now
    ):
        shipper = await make_shipper()
        carrier = await make_carrier()
        vehicle = await make_vehicle(carrier)
        load = await make_load(shipper)
        await make_bid(load, vehicle)

        assert await eligibility.list_eligible_loads(db_session, carrier.id, now) == []


@pytest.mark.unit
class TestEligibleVehicles:

    async def test_matches_type_capacity_and_status(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, now
    ):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(
            shipper,
            required_vehicle_types=[VehicleType.OPEN_BODY, VehicleType.CLOSED_CONTAINER],
            requirement=Capacity.tons(8),
        )
        fits = await make_vehicle(carrier, VehicleType.CLOSED_CONTAINER, Capacity.tons(8))
        bigger = await make_vehicle(carrier, VehicleType.OPEN_BODY, Capacity.tons(20))
        await make_vehicle(carrier, VehicleType.OPEN_BODY, Capacity.tons(5))
        await make_vehicle(carrier, VehicleType.REFRIGERATED, Capacity.tons(20))
        await make_vehicle(carrier, VehicleType.OPEN_BODY, Capacity.tons(20), status=VehicleStatus.MAINTENANCE)
        someone_else = await make_carrier()
        await make_vehicle(someone_else, VehicleType.OPEN_BODY, Capacity.tons(20))

        vehicles = await eligibility.list_eligible_vehicles(db_session, carrier.id, load.id, now)

        assert {v.id for v in vehicles} == {fits.id, bigger.id}

    async def test_tanker_load_matches_litres_only(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, now
    ):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(
            shipper,
            required_vehicle_types=[VehicleType.TANKER],
            requirement=Capacity.litres(15000),
        )
        tanker = await make_vehicle(carrier, VehicleType.TANKER, Capacity.litres(20000))
        await make_vehicle(carrier, VehicleType.TANKER, Capacity.litres(10000))

        vehicles = await eligibility.list_eligible_vehicles(db_session, carrier.id, load.id, now)

        assert [v.id for v in vehicles] == [tanker.id]

    async def test_missing_load(self, db_session, make_carrier, now):
        carrier = await make_carrier()
        with pytest.raises(ResourceNotFoundError):
            await eligibility.list_eligible_vehicles(db_session, carrier.id, "missing", now)

    async def test_closed_load(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(
            shipper,
            bidding_deadline=now - timedelta(minutes=1),
            pickup_date=now + timedelta(days=1),
        )
        with pytest.raises(InvalidStateError):
            await eligibility.list_eligible_vehicles(db_session, carrier.id, load.id, now)


@pytest.mark.unit
class TestLoadVisibility:

    async def test_open_load_visible_to_any_carrier(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(shipper)

        found = await eligibility.get_carrier_load_detail(db_session, carrier.id, load.id, now)

        assert found.id == load.id

    async def test_open_load_visible_after_deadline_until_pickup(
        self, db_session, make_shipper, make_carrier, make_load, now
    ):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(
            shipper,
            bidding_deadline=now - timedelta(hours=1),
            pickup_date=now + timedelta(hours=5),
        )

        found = await eligibility.get_carrier_load_detail(db_session, carrier.id, load.id, now)

        assert found.id == load.id

    async def test_expired_load_forbidden(self, db_session, make_shipper, make_carrier, make_load, now):
        shipper = await make_shipper()
        carrier = await make_carrier()
        load = await make_load(
            shipper,
            bidding_deadline=now - timedelta(days=2),
            pickup_date=now - timedelta(hours=1),
        )

        with pytest.raises(PermissionDeniedError, match="expired"):
            await eligibility.get_carrier_load_detail(db_session, carrier.id, load.id, now)

    async def test_assigned_load_only_for_bidders(
        self, db_session, make_shipper, make_carrier, make_vehicle, make_load, make_bid, now
    ):
        shipper = await make_shipper()
        bidder = await make_carrier()
        outsider = await make_carrier()
        vehicle = await make_vehicle(bidder)
        load = await make_load(shipper)
        await make_bid(load, vehicle)
        load.status = LoadStatus.ASSIGNED
        await db_session.commit()

        found = await eligibility.get_carrier_load_detail(db_session, bidder.id, load.id, now)
        assert found.id == load.id

        with pytest.raises(PermissionDeniedError):
            await eligibility.get_carrier_load_detail(db_session, outsider.id, load.id, now)
