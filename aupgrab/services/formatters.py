from typing import Any, Dict, Optional

from aupgrab.models.base import isoformat_utc
from aupgrab.services.status import project_status


def _amount(booking) -> float:
    return float(booking.amount)


def booking_details(booking) -> Dict[str, Any]:
    details = {
        "itemIdentity": booking.item_type or "",
        "quantity": booking.quantity or 1,
        "notes": booking.special_requests or "",
        "pickupLocation": "",
        "deliveryLocation": booking.delivery_location or "",
    }
    extra = booking.extra_fields
    if not extra:
        return details
    details["notes"] = extra.get("notes") or ""
    if booking.category == "parcel":
        details["pickupPerson"] = extra.get("pickupPerson") or ""
    else:
        details["pickupLocation"] = extra.get("pickupLocation") or ""
    if booking.category == "laundry":
        details["basketName"] = extra.get("basketName") or ""
    return details


def format_dashboard_booking(booking, delivered_at=None) -> Dict[str, Any]:
    """Row shape for the rider dashboard listing."""
    status = project_status(booking.status, booking.delivery_status)
    completed_at = None
    if status == "delivered":
        completed_at = isoformat_utc(delivered_at or booking.created_at)
    amount = _amount(booking)
    return {
        "order_id": booking.order_id,
        "created_at": isoformat_utc(booking.created_at),
        "status": "completed" if status == "delivered" else status,
        "rider_id": booking.rider_id or "",
        "rider_name": booking.rider_name or "",
        "assigned_at": isoformat_utc(booking.assigned_at),
        "completed_at": completed_at,
        "booking_type": booking.category,
        "customer_name": booking.name or "",
        "customer_phone": booking.phone or "",
        "payment_status": "Not Yet Paid" if amount > 0 else "Paid",
        "payment_amount": amount,
        "booking_details": booking_details(booking),
    }


def format_order(booking) -> Dict[str, Any]:
    """Full order as polled by the customer session."""
    return {
        "orderId": booking.order_id,
        "sessionId": booking.session_id,
        "type": booking.category,
        "name": booking.name,
        "phone": booking.phone,
        "foodType": booking.item_type,
        "quantity": booking.quantity,
        "specialRequests": booking.special_requests,
        "deliveryLocation": booking.delivery_location,
        "totalAmount": _amount(booking),
        "status": booking.status,
        "timestamp": isoformat_utc(booking.created_at),
        "riderId": booking.rider_id,
        "riderName": booking.rider_name,
        "riderPhone": booking.rider_phone,
        "estimatedDelivery": isoformat_utc(booking.estimated_delivery),
        "deliveryStatus": booking.delivery_status,
        "frontendStatus": project_status(booking.status, booking.delivery_status),
    }


def format_booking_status(booking) -> Dict[str, Any]:
    return {
        "order_id": booking.order_id,
        "status": project_status(booking.status, booking.delivery_status),
        "rider_name": booking.rider_name or "",
        "rider_phone": booking.rider_phone or "",
    }


def format_tracking(record) -> Optional[Dict[str, Any]]:
    if record is None:
        return None
    return {
        "orderId": record.order_id,
        "sessionId": record.session_id,
        "status": record.status,
        "timestamp": isoformat_utc(record.created_at),
        "riderId": record.rider_id or "",
        "riderLocation": record.location,
        "estimatedArrival": isoformat_utc(record.estimated_arrival),
        "notes": record.notes or "",
        "lastUpdated": isoformat_utc(record.last_updated),
    }


def format_message(message) -> Dict[str, Any]:
    return {
        "timestamp": isoformat_utc(message.timestamp),
        "order_id": message.order_id,
        "sender_type": message.sender_type or "rider",
        "sender_id": message.sender_id or "",
        "text": message.text or "",
    }
