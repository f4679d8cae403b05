import math

from aupgrab.models.base import as_utc, utcnow

ORDER_STATUSES = ("pending", "confirmed", "delivered", "cancelled")
DELIVERY_STATUSES = ("waiting_for_rider", "rider_assigned", "on_the_way", "delivered", "cancelled")
TERMINAL_STATUSES = {"delivered", "cancelled"}

PROGRESS_BY_STATUS = {
    "waiting_for_rider": 10,
    "rider_assigned": 40,
    "on_the_way": 75,
    "delivered": 100,
}
DEFAULT_PROGRESS = 20
ON_THE_WAY_FALLBACK_ETA = 20
DEFAULT_FALLBACK_ETA = 30


def project_status(order_status, delivery_status):
    """Collapse order status and delivery status into one frontend status.

    Terminal states win first, then delivery-side signals, then the order
    side. Cancellation beats everything.
    """
    if delivery_status == "cancelled" or order_status == "cancelled":
        return "cancelled"
    if delivery_status == "delivered" or order_status == "delivered":
        return "delivered"
    if delivery_status == "on_the_way":
        return "picked_up"
    if delivery_status == "rider_assigned" or order_status == "confirmed":
        return "assigned"
    return "pending"


def progress_estimate(status, estimated_arrival=None, now=None):
    progress = PROGRESS_BY_STATUS.get(status, DEFAULT_PROGRESS)
    if estimated_arrival is not None:
        now = now or utcnow()
        seconds = (as_utc(estimated_arrival) - as_utc(now)).total_seconds()
        eta_minutes = max(0, math.floor(seconds / 60 + 0.5))
    elif status == "on_the_way":
        eta_minutes = ON_THE_WAY_FALLBACK_ETA
    else:
        eta_minutes = DEFAULT_FALLBACK_ETA
    return {"progress": progress, "etaMinutes": eta_minutes}
