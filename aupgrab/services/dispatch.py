"""
Periodic delivery sweep.

Stands in for a real dispatch engine: pending orders that nobody picked up
get a rider from a fixed pool, confirmed orders get a fresh ETA and move to
``on_the_way``. Rider choice and ETA are strategies so either can be
swapped without touching the sweep.
"""
import logging
import random
import threading
from datetime import timedelta

from aupgrab.models.base import as_utc, utcnow

logger = logging.getLogger(__name__)


class RandomRiderStrategy:
    def __init__(self, riders, rng=None):
        self.riders = list(riders)
        self.rng = rng or random.Random()

    def choose(self, booking):
        if not self.riders:
            return None
        return self.rng.choice(self.riders)


class RoundRobinRiderStrategy:
    def __init__(self, riders):
        self.riders = list(riders)
        self._next = 0

    def choose(self, booking):
        if not self.riders:
            return None
        rider = self.riders[self._next % len(self.riders)]
        self._next += 1
        return rider


class RandomEtaStrategy:
    def __init__(self, min_minutes=25, max_minutes=45, rng=None):
        if min_minutes > max_minutes:
            raise ValueError("min_minutes must not exceed max_minutes")
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes
        self.rng = rng or random.Random()

    def estimate(self, booking, now):
        return now + timedelta(minutes=self.rng.uniform(self.min_minutes, self.max_minutes))


RIDER_STRATEGIES = {
    "random": RandomRiderStrategy,
    "round_robin": RoundRobinRiderStrategy,
}


def rider_strategy_from_config(name, riders):
    try:
        strategy_cls = RIDER_STRATEGIES[(name or "random").lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown dispatch strategy: {name}") from exc
    return strategy_cls(riders)


class DeliverySweep:
    def __init__(self, orders, bookings, session, rider_strategy, eta_strategy, pending_after=timedelta(minutes=5)):
        self.orders = orders
        self.bookings = bookings
        self.session = session
        self.rider_strategy = rider_strategy
        self.eta_strategy = eta_strategy
        self.pending_after = pending_after
        self._lock = threading.Lock()

    def run(self, now=None):
        """Run one pass. Returns ``None`` if another pass is in progress."""
        if not self._lock.acquire(blocking=False):
            logger.info("Delivery sweep already running, skipping")
            return None
        try:
            return self._sweep(now or utcnow())
        finally:
            self._lock.release()

    def _sweep(self, now):
        result = {"assigned": [], "dispatched": [], "failed": []}
        for booking in self.orders.open_bookings():
            order_id = booking.order_id
            try:
                if booking.status == "pending" and not booking.rider_id:
                    if now - as_utc(booking.created_at) <= self.pending_after:
                        continue
                    rider = self.rider_strategy.choose(booking)
                    if rider is None:
                        logger.warning("No rider available for %s", order_id)
                        continue
                    self.bookings.assign_rider(order_id, rider["id"], rider.get("name"), rider.get("phone", ""))
                    result["assigned"].append(order_id)
                elif booking.status == "confirmed" and booking.rider_id:
                    eta = self.eta_strategy.estimate(booking, now)
                    self.bookings.update_delivery_status(order_id, "on_the_way", estimated_arrival=eta)
                    result["dispatched"].append(order_id)
            except Exception:
                self.session.rollback()
                logger.exception("Delivery sweep failed for order %s", order_id)
                result["failed"].append(order_id)
        logger.info(
            "Delivery sweep: %d assigned, %d dispatched, %d failed",
            len(result["assigned"]),
            len(result["dispatched"]),
            len(result["failed"]),
        )
        return result


_sweeper_lock = threading.Lock()
_sweeper_started = False
_sweeper_stop = threading.Event()


def start_delivery_sweeper(app, interval_seconds):
    """Start the background sweep thread once per process."""
    global _sweeper_started
    with _sweeper_lock:
        if _sweeper_started:
            return False
        _sweeper_started = True
    _sweeper_stop.clear()

    def _run():
        while not _sweeper_stop.wait(interval_seconds):
            try:
                with app.app_context():
                    app.extensions["aupgrab"].sweep.run()
            except Exception:
                app.logger.exception("Delivery sweeper iteration failed")

    thread = threading.Thread(target=_run, name="delivery-sweeper", daemon=True)
    thread.start()
    app.logger.info("Delivery sweeper started (every %ss)", interval_seconds)
    return True


def stop_delivery_sweeper():
    global _sweeper_started
    _sweeper_stop.set()
    with _sweeper_lock:
        _sweeper_started = False
