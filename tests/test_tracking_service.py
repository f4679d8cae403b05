from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from aupgrab.models import Delivery
from aupgrab.models.base import as_utc, utcnow


def test_update_is_partial(services, submit):
    booking = submit()
    eta = utcnow() + timedelta(minutes=30)

    services.tracking.update(
        booking.order_id,
        "on_the_way",
        rider_id="R002",
        rider_location={"lat": 14.6, "lng": 121.0},
        estimated_arrival=eta,
        notes="near gate 2",
    )
    services.tracking.update(booking.order_id, "on_the_way", notes="at the lobby")

    record = services.tracking.snapshot(booking.order_id)
    assert record.rider_id == "R002"
    assert record.location == {"lat": 14.6, "lng": 121.0}
    assert abs((as_utc(record.estimated_arrival) - eta).total_seconds()) < 1
    assert record.notes == "at the lobby"


def test_update_bumps_last_updated(services, submit):
    booking = submit()
    before = as_utc(services.tracking.snapshot(booking.order_id).last_updated)

    services.tracking.update(booking.order_id, "rider_assigned")

    record = services.tracking.snapshot(booking.order_id)
    assert record.status == "rider_assigned"
    assert as_utc(record.last_updated) >= before


def test_update_without_record_is_a_noop(services):
    assert services.tracking.update("ORD-19990101-000000-0000", "on_the_way") is None
    assert Delivery.query.count() == 0


def test_initialize_is_at_most_once_per_order(services, submit):
    booking = submit()
    assert services.tracking.initialize(booking.order_id, "S1") is None
    assert Delivery.query.filter_by(order_id=booking.order_id).count() == 1


def test_ensure_returns_existing_record(services, submit):
    booking = submit()
    first = services.tracking.snapshot(booking.order_id)
    assert services.tracking.ensure(booking.order_id, "S1").id == first.id


def test_progress_uses_stored_estimated_arrival(services, submit):
    booking = submit()
    now = utcnow()
    services.tracking.update(booking.order_id, "on_the_way", estimated_arrival=now + timedelta(minutes=18))

    record = services.tracking.snapshot(booking.order_id)
    assert services.tracking.progress(record, now=now) == {"progress": 75, "etaMinutes": 18}


def test_unparseable_location_reads_as_none(services, submit):
    booking = submit()
    record = services.tracking.snapshot(booking.order_id)
    record.rider_location = "not json"
    assert record.location is None


def test_ensure_swallows_lookup_failures(services, submit, monkeypatch):
    booking = submit()

    def broken_get(order_id):
        raise SQLAlchemyError("deliveries table locked")

    monkeypatch.setattr(services.deliveries, "get", broken_get)
    assert services.tracking.ensure(booking.order_id, "S1") is None
