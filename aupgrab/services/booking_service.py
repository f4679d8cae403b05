import logging
import random
from decimal import Decimal

from aupgrab.errors import ConflictError, NotFoundError, ValidationError
from aupgrab.models import BOOKING_MODELS
from aupgrab.models.base import utcnow
from aupgrab.services.status import DELIVERY_STATUSES, TERMINAL_STATUSES, project_status

logger = logging.getLogger(__name__)

MAX_ORDER_ID_ATTEMPTS = 20


def generate_order_id(now=None, rng=random):
    now = now or utcnow()
    return f"ORD-{now.strftime('%Y%m%d-%H%M%S')}-{rng.randrange(10000):04d}"


class BookingService:
    ESTIMATED_TIME = "30-45 minutes"

    def __init__(self, orders, tracking, session, id_factory=generate_order_id):
        self.orders = orders
        self.tracking = tracking
        self.session = session
        self.id_factory = id_factory

    @staticmethod
    def _parse_quantity(raw):
        if raw is None or raw == "":
            return 1
        try:
            quantity = int(str(raw).strip())
            if quantity <= 0:
                raise ValueError
        except Exception as exc:
            raise ValidationError("Quantity must be a positive integer.") from exc
        return quantity

    @staticmethod
    def _parse_amount(raw):
        if raw is None or raw == "":
            return Decimal("0.00")
        try:
            amount = Decimal(str(raw).strip()).quantize(Decimal("0.01"))
            if amount < 0 or not amount.is_finite():
                raise ValueError
        except Exception as exc:
            raise ValidationError("Total amount must be a non-negative number.") from exc
        return amount

    def _new_order_id(self, now):
        for _ in range(MAX_ORDER_ID_ATTEMPTS):
            order_id = self.id_factory(now)
            if not self.orders.order_id_exists(order_id):
                return order_id
        raise ConflictError("Could not allocate a unique order id.")

    def require_order(self, order_id):
        if not order_id:
            raise ValidationError("Missing order_id")
        booking = self.orders.find_by_order_id(order_id)
        if booking is None:
            raise NotFoundError(f"Order not found: {order_id}")
        return booking

    def _record_tracking(self, booking, status, **patch):
        self.tracking.ensure(booking.order_id, booking.session_id)
        self.tracking.update(booking.order_id, status, **patch)

    def submit(self, category, **fields):
        if category not in BOOKING_MODELS:
            raise ValidationError(f"Invalid booking type: {category}")
        quantity = self._parse_quantity(fields.pop("quantity", None))
        total_amount = self._parse_amount(fields.pop("total_amount", None))
        now = utcnow()
        order_id = self._new_order_id(now)

        booking = self.orders.add(
            category,
            order_id=order_id,
            quantity=quantity,
            total_amount=total_amount,
            status="pending",
            delivery_status="waiting_for_rider",
            created_at=now,
            rider_id="",
            rider_name="",
            **fields,
        )
        self.session.commit()
        logger.info("Booking %s submitted (%s)", order_id, category)

        self.tracking.initialize(order_id, booking.session_id)
        return booking

    def assign_rider(self, order_id, rider_id, rider_name, rider_phone=""):
        booking = self.require_order(order_id)
        if not rider_id:
            raise ValidationError("Missing rider_id")
        current = project_status(booking.status, booking.delivery_status)
        if current in TERMINAL_STATUSES:
            raise ConflictError(f"Order already {current}: {order_id}")

        booking.rider_id = rider_id
        booking.rider_name = rider_name or ""
        booking.rider_phone = rider_phone or ""
        booking.status = "confirmed"
        booking.delivery_status = "rider_assigned"
        booking.assigned_at = utcnow()
        self.session.commit()
        logger.info("Rider %s assigned to %s", rider_id, order_id)

        self._record_tracking(booking, "rider_assigned", rider_id=rider_id)
        return booking

    def update_delivery_status(
        self,
        order_id,
        delivery_status,
        rider_id=None,
        rider_location=None,
        estimated_arrival=None,
        notes=None,
    ):
        booking = self.require_order(order_id)
        status = (delivery_status or "").strip().lower()
        if not status:
            raise ValidationError("Missing deliveryStatus")
        if status not in DELIVERY_STATUSES:
            raise ValidationError(f"Invalid delivery status: {status}")
        if booking.status == "cancelled" and status != "cancelled":
            raise ConflictError(f"Order already cancelled: {order_id}")

        booking.delivery_status = status
        if status in TERMINAL_STATUSES:
            booking.status = status
        if rider_id:
            booking.rider_id = rider_id
        if estimated_arrival:
            booking.estimated_delivery = estimated_arrival
        self.session.commit()
        logger.info("Delivery status of %s set to %s", order_id, status)

        self._record_tracking(
            booking,
            status,
            rider_id=rider_id,
            rider_location=rider_location,
            estimated_arrival=estimated_arrival,
            notes=notes,
        )
        return booking

    def complete_delivery(self, order_id):
        booking = self.require_order(order_id)
        booking.status = "delivered"
        booking.delivery_status = "delivered"
        self.session.commit()
        logger.info("Order %s delivered", order_id)

        self._record_tracking(booking, "delivered")
        return booking

    def cancel(self, order_id):
        booking = self.require_order(order_id)
        booking.status = "cancelled"
        booking.delivery_status = "cancelled"
        self.session.commit()
        logger.info("Order %s cancelled", order_id)

        self.tracking.update(order_id, "cancelled")
        return booking

    def latest_for_session(self, session_id):
        if not session_id:
            raise ValidationError("Missing sessionId")
        booking = self.orders.find_latest_by_session_id(session_id)
        if booking is None:
            raise NotFoundError("No order found for this session")
        return booking

    def list_bookings(self, category="all"):
        category = (category or "all").strip().lower()
        if category == "all":
            categories = list(BOOKING_MODELS.keys())
        elif category in BOOKING_MODELS:
            categories = [category]
        else:
            raise ValidationError(f"Invalid booking type: {category}")
        return [
            booking
            for booking in self.orders.list_bookings(categories)
            if booking.order_id and project_status(booking.status, booking.delivery_status) != "cancelled"
        ]
