import json
import logging

from aupgrab.models.base import utcnow
from aupgrab.services.status import progress_estimate

logger = logging.getLogger(__name__)


class TrackingService:
    """Live delivery state kept beside each booking.

    Writes here are secondary to the booking mutation that triggers them:
    they run after the booking is committed and a failure is logged and
    rolled back without touching the caller's result.
    """

    def __init__(self, tracking, session):
        self.tracking = tracking
        self.session = session

    def _best_effort(self, label, order_id, func):
        try:
            result = func()
            self.session.commit()
            return result
        except Exception:
            self.session.rollback()
            logger.exception("Error %s for order %s", label, order_id)
            return None

    def _create(self, order_id, session_id):
        now = utcnow()
        return self.tracking.add(
            order_id=order_id,
            session_id=session_id,
            status="waiting_for_rider",
            created_at=now,
            last_updated=now,
        )

    def initialize(self, order_id, session_id):
        return self._best_effort(
            "initializing delivery tracking",
            order_id,
            lambda: self._create(order_id, session_id),
        )

    def ensure(self, order_id, session_id):
        """Return the tracking record, creating it when the order has none."""

        def _get_or_create():
            record = self.tracking.get(order_id)
            if record is not None:
                return record
            return self._create(order_id, session_id)

        return self._best_effort("ensuring delivery tracking", order_id, _get_or_create)

    def update(self, order_id, status, rider_id=None, rider_location=None, estimated_arrival=None, notes=None):
        """Set status and last-updated; other fields only when supplied.

        Silently does nothing when the order has no tracking record.
        """

        def _apply():
            record = self.tracking.get(order_id)
            if record is None:
                return None
            record.status = status
            record.last_updated = utcnow()
            if rider_id:
                record.rider_id = rider_id
            if rider_location:
                record.rider_location = json.dumps(rider_location)
            if estimated_arrival:
                record.estimated_arrival = estimated_arrival
            if notes:
                record.notes = notes
            return record

        return self._best_effort("updating delivery tracking", order_id, _apply)

    def snapshot(self, order_id):
        return self.tracking.get(order_id)

    @staticmethod
    def progress(record, now=None):
        return progress_estimate(record.status, record.estimated_arrival, now=now)
