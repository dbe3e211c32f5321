"""Assignment transaction tests: accepting a bid and the shipper's bid views."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.middleware.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from app.models import Bid, BidStatus, Carrier, Load, LoadStatus, Vehicle, VehicleStatus
from app.services.assignment import accept_bid, get_shipper_bid_detail, list_bids_for_load
from app.services.bidding import place_bid


@pytest.fixture
def open_market(db_session, make_shipper, make_carrier, make_vehicle, make_load, now):
    """A load with one bid per amount from distinct carriers, placed before the deadline."""
    async def _build(*amounts):
        shipper = await make_shipper()
        load = await make_load(
            shipper,
            bidding_deadline=now + timedelta(hours=1),
            pickup_date=now + timedelta(days=1),
        )
        bids = []
        for amount in amounts:
            carrier = await make_carrier()
            vehicle = await make_vehicle(carrier)
            bids.append(await place_bid(db_session, carrier.id, load.id, vehicle.id, amount, 24, now))
        return shipper, load, bids

    return _build


@pytest.mark.unit
class TestAcceptBid:

    async def test_accepting_cheaper_bid_resolves_the_market(self, db_session, open_market, reload, now):
        shipper, load, (dear, cheap) = await open_market(500, 400)
        after_deadline = now + timedelta(hours=2)

        result = await accept_bid(db_session, shipper.id, cheap.id, after_deadline)

        assert result["bid_id"] == cheap.id
        assert result["rejected_bid_ids"] == [dear.id]
        assert result["released_vehicle_ids"] == [dear.vehicle_id]

        assert (await reload(Bid, cheap.id)).status == BidStatus.ACCEPTED
        assert (await reload(Bid, dear.id)).status == BidStatus.REJECTED
        assert (await reload(Vehicle, dear.vehicle_id)).status == VehicleStatus.AVAILABLE
        assert (await reload(Vehicle, cheap.vehicle_id)).status == VehicleStatus.BOOKED

        load = await reload(Load, load.id)
        assert load.status == LoadStatus.ASSIGNED
        assert load.selected_carrier_id == cheap.carrier_id
        assert load.assigned_vehicle_id == cheap.vehicle_id

    async def test_books_one_vehicle_and_releases_all_others(self, db_session, open_market, reload, now):
        shipper, load, bids = await open_market(300, 350, 400, 450)
        winner = bids[2]

        await accept_bid(db_session, shipper.id, winner.id, now + timedelta(hours=2))

        for bid in bids:
            vehicle = await reload(Vehicle, bid.vehicle_id)
            expected = VehicleStatus.BOOKED if bid.id == winner.id else VehicleStatus.AVAILABLE
            assert vehicle.status == expected

    async def test_second_accept_on_same_load_fails(self, db_session, open_market, now):
        shipper, load, (first, second) = await open_market(500, 400)
        shipper_id, load_id, second_id = shipper.id, load.id, second.id
        after_deadline = now + timedelta(hours=2)

        await accept_bid(db_session, shipper_id, first.id, after_deadline)

        with pytest.raises(InvalidStateError):
            await accept_bid(db_session, shipper_id, second_id, after_deadline)

        accepted = await db_session.scalar(
            select(func.count(Bid.id)).where(Bid.load_id == load_id, Bid.status == BidStatus.ACCEPTED)
        )
        assert accepted == 1

    async def test_accept_twice_same_bid_fails(self, db_session, open_market, now):
        shipper, _, (bid,) = await open_market(500)
        after_deadline = now + timedelta(hours=2)

        await accept_bid(db_session, shipper.id, bid.id, after_deadline)
        with pytest.raises(InvalidStateError):
            await accept_bid(db_session, shipper.id, bid.id, after_deadline)

    async def test_not_before_deadline(self, db_session, open_market, now):
        shipper, _, (bid,) = await open_market(500)
        with pytest.raises(InvalidStateError, match="deadline"):
            await accept_bid(db_session, shipper.id, bid.id, now)

    async def test_not_after_pickup(self, db_session, open_market, now):
        shipper, load, (bid,) = await open_market(500)
        with pytest.raises(InvalidStateError, match="Pickup"):
            await accept_bid(db_session, shipper.id, bid.id, load.pickup_date)

    async def test_missing_bid(self, db_session, make_shipper, now):
        shipper = await make_shipper()
        with pytest.raises(ResourceNotFoundError):
            await accept_bid(db_session, shipper.id, "missing", now)

    async def test_other_shippers_load(self, db_session, open_market, make_shipper, now):
        _, _, (bid,) = await open_market(500)
        intruder = await make_shipper()
        with pytest.raises(PermissionDeniedError):
            await accept_bid(db_session, intruder.id, bid.id, now + timedelta(hours=2))

    async def test_failure_midway_leaves_everything_untouched(
        self, db_session, open_market, reload, now
    ):
        shipper, load, (winner, loser) = await open_market(400, 500)
        shipper_id, load_id = shipper.id, load.id
        winner_id, loser_id = winner.id, loser.id
        winner_vehicle_id, loser_vehicle_id = winner.vehicle_id, loser.vehicle_id

        # Booking the winning vehicle is refused after the bids have been resolved in memory
        vehicle = await reload(Vehicle, winner_vehicle_id)
        vehicle.status = VehicleStatus.MAINTENANCE
        await db_session.commit()

        with pytest.raises(InvalidStateError, match="cannot move from MAINTENANCE"):
            await accept_bid(db_session, shipper_id, winner_id, now + timedelta(hours=2))

        assert (await reload(Bid, winner_id)).status == BidStatus.PENDING
        assert (await reload(Bid, loser_id)).status == BidStatus.PENDING
        assert (await reload(Vehicle, loser_vehicle_id)).status == VehicleStatus.BIDDED
        assert (await reload(Vehicle, winner_vehicle_id)).status == VehicleStatus.MAINTENANCE

        load = await reload(Load, load_id)
        assert load.status == LoadStatus.CREATED
        assert load.selected_carrier_id is None
        assert load.assigned_vehicle_id is None


@pytest.mark.unit
class TestShipperBidViews:

    async def test_bids_sorted_by_amount_then_rating(self, db_session, open_market, make_carrier, reload):
        shipper, load, (a, b, c) = await open_market(400, 300, 400)
        carrier_a = await reload(Carrier, a.carrier_id)
        carrier_c = await reload(Carrier, c.carrier_id)
        carrier_a.rating = 3.5
        carrier_c.rating = 4.8
        await db_session.commit()

        bids = await list_bids_for_load(db_session, shipper.id, load.id)

        assert [bid.id for bid in bids] == [b.id, c.id, a.id]
        assert bids[1].carrier.rating == 4.8

    async def test_bids_hidden_after_assignment(self, db_session, open_market, now):
        shipper, load, (bid,) = await open_market(500)
        await accept_bid(db_session, shipper.id, bid.id, now + timedelta(hours=2))

        with pytest.raises(InvalidStateError):
            await list_bids_for_load(db_session, shipper.id, load.id)

    async def test_bids_for_someone_elses_load(self, db_session, open_market, make_shipper):
        _, load, _ = await open_market(500)
        intruder = await make_shipper()
        with pytest.raises(PermissionDeniedError):
            await list_bids_for_load(db_session, intruder.id, load.id)

    async def test_bid_detail(self, db_session, open_market, make_shipper, now):
        shipper, load, (bid,) = await open_market(500)

        found = await get_shipper_bid_detail(db_session, shipper.id, bid.id, now)
        assert found.carrier.id == bid.carrier_id

        intruder = await make_shipper()
        with pytest.raises(ResourceNotFoundError):
            await get_shipper_bid_detail(db_session, intruder.id, bid.id, now)
        with pytest.raises(ResourceNotFoundError):
            await get_shipper_bid_detail(db_session, shipper.id, bid.id, load.pickup_date)
