import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from aupgrab.errors import AppError, NotFoundError, StoreError, ValidationError, failure_payload
from aupgrab.models.base import isoformat_utc, parse_iso_datetime, utcnow
from aupgrab.services import formatters
from aupgrab.services.payloads import ActionRequest, parse_body
from aupgrab.services.status import project_status

logger = logging.getLogger(__name__)


def success_payload(message="", **extra):
    payload = {"success": True, "message": message}
    payload.update(extra)
    return payload


class RequestRouter:
    """Single entry point for the POST and GET action surfaces.

    Handlers return a payload dict; every failure leaves as
    ``{"success": False, "message": ...}`` with an HTTP status.
    """

    def __init__(self, bookings, tracking, chat, session):
        self.bookings = bookings
        self.tracking = tracking
        self.chat = chat
        self.session = session
        self.post_actions = {
            "submitBooking": (self.submit_booking, "Failed to submit booking"),
            "submit_booking": (self.submit_booking_compat, "Failed to submit booking"),
            "getOrderStatus": (self.get_order_status, "Failed to get order status"),
            "assignRider": (self.assign_rider, "Failed to assign rider"),
            "assign_rider": (self.assign_rider, "Failed to assign rider"),
            "updateDeliveryStatus": (self.update_delivery_status, "Failed to update delivery status"),
            "confirmDelivery": (self.complete_booking, "Failed to confirm delivery"),
            "complete_booking": (self.complete_booking, "Failed to complete booking"),
            "send_message": (self.send_message, "Failed to send message"),
            "cancel_booking": (self.cancel_booking, "Failed to cancel booking"),
        }
        self.get_actions = {
            "get_all_bookings": (self.get_all_bookings, "Failed to load bookings"),
            "get_booking_status": (self.get_booking_status, "Failed to get booking status"),
            "get_delivery_status": (self.get_delivery_status, "Failed to get delivery status"),
            "get_messages": (self.get_messages, "Failed to get messages"),
        }

    def handle_post(self, raw_body):
        try:
            data = parse_body(raw_body)
        except AppError as err:
            return failure_payload(err.message), err.status_code
        return self._dispatch(self.post_actions, data, "Invalid action")

    def handle_get(self, args):
        return self._dispatch(self.get_actions, dict(args or {}), "Invalid GET action")

    def _dispatch(self, actions, data, invalid_message):
        request = ActionRequest.from_payload(data)
        if not request.action:
            return failure_payload("Missing action"), 400
        entry = actions.get(request.action)
        if entry is None:
            return failure_payload(invalid_message), 400
        handler, failure_prefix = entry
        try:
            return handler(request), 200
        except AppError as err:
            self.session.rollback()
            return failure_payload(err.message), err.status_code
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store error in %s", request.action)
            err = StoreError(f"{failure_prefix}: {exc}")
            return failure_payload(err.message), err.status_code
        except Exception as exc:
            self.session.rollback()
            logger.exception("Unhandled error in %s", request.action)
            return failure_payload(f"Server error: {exc}"), 500

    # POST actions

    def submit_booking(self, request):
        booking = self.bookings.submit(request.booking_category, **request.booking_fields())
        return success_payload(
            "Booking submitted successfully",
            orderId=booking.order_id,
            order_id=booking.order_id,
            status=booking.status,
            estimatedTime=self.bookings.ESTIMATED_TIME,
            deliveryStatus=booking.delivery_status,
        )

    def submit_booking_compat(self, request):
        booking = self.bookings.submit(request.booking_category, **request.booking_fields())
        return success_payload("Booking submitted successfully", order_id=booking.order_id)

    def get_order_status(self, request):
        booking = self.bookings.latest_for_session(request.session_id)
        delivery_progress = None
        if booking.rider_id:
            delivery_progress = formatters.format_tracking(self.tracking.snapshot(booking.order_id))
        return success_payload(
            "Order status retrieved",
            order=formatters.format_order(booking),
            deliveryProgress=delivery_progress,
            lastUpdated=isoformat_utc(utcnow()),
        )

    def assign_rider(self, request):
        booking = self.bookings.assign_rider(
            request.order_id,
            request.rider_id,
            request.rider_name,
            request.rider_phone,
        )
        return success_payload("Rider assigned successfully", orderId=booking.order_id)

    def update_delivery_status(self, request):
        try:
            estimated_arrival = parse_iso_datetime(request.estimated_arrival)
        except ValueError as exc:
            raise ValidationError(f"Invalid estimatedArrival: {request.estimated_arrival}") from exc
        booking = self.bookings.update_delivery_status(
            request.order_id,
            request.delivery_status,
            rider_id=request.rider_id,
            rider_location=self._structured(request.rider_location),
            estimated_arrival=estimated_arrival,
            notes=request.notes,
        )
        return success_payload(
            "Delivery status updated",
            orderId=booking.order_id,
            deliveryStatus=booking.delivery_status,
            status=project_status(booking.status, booking.delivery_status),
        )

    def complete_booking(self, request):
        booking = self.bookings.complete_delivery(request.order_id)
        return success_payload("Order completed", orderId=booking.order_id, deliveryStatus="delivered")

    def send_message(self, request):
        message = self.chat.send_message(
            request.order_id,
            request.text,
            sender_type=request.sender_type,
            sender_id=request.sender_id,
        )
        return success_payload("Message sent", data=formatters.format_message(message))

    def cancel_booking(self, request):
        booking = self.bookings.cancel(request.order_id)
        return success_payload(
            "Booking cancelled and removed from dashboard",
            orderId=booking.order_id,
            status="cancelled",
        )

    # GET actions

    def get_all_bookings(self, request):
        bookings = []
        for booking in self.bookings.list_bookings(request.category or "all"):
            delivered_at = None
            if project_status(booking.status, booking.delivery_status) == "delivered":
                record = self.tracking.snapshot(booking.order_id)
                if record is not None and record.status == "delivered":
                    delivered_at = record.last_updated
            bookings.append(formatters.format_dashboard_booking(booking, delivered_at))
        return success_payload(bookings=bookings)

    def get_booking_status(self, request):
        booking = self.bookings.require_order(request.order_id)
        return success_payload(booking=formatters.format_booking_status(booking))

    def get_delivery_status(self, request):
        if not request.order_id:
            raise ValidationError("Missing order_id")
        record = self.tracking.snapshot(request.order_id)
        if record is None:
            raise NotFoundError("No delivery record yet")
        estimate = self.tracking.progress(record)
        return success_payload(
            delivery={
                "status": record.status,
                "progress": estimate["progress"],
                "eta": estimate["etaMinutes"],
            }
        )

    def get_messages(self, request):
        messages = self.chat.list_messages(request.order_id, request.since)
        return success_payload(messages=[formatters.format_message(m) for m in messages])

    @staticmethod
    def _structured(value):
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value
