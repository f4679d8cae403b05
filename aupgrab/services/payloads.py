"""Request body parsing and field-name normalisation.

Two generations of frontends post to the same endpoint: the customer app
uses camelCase (``orderId``, ``customerName``) while the rider dashboard
uses snake_case (``order_id``, ``rider_name``). Both are folded into one
``ActionRequest`` before dispatch.
"""
import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from aupgrab.errors import ValidationError

CATEGORIES = ("food", "parcel", "laundry")

# Canonical name -> accepted keys, first non-empty wins.
ALIASES = {
    "action": ("action",),
    "order_id": ("orderId", "order_id"),
    "session_id": ("sessionId", "session_id"),
    "category": ("type", "category", "booking_type"),
    "customer_name": ("name", "customerName", "customer_name"),
    "customer_phone": ("phone", "customerPhone", "customer_phone"),
    "item_type": ("itemIdentity", "foodType", "itemType", "item_type"),
    "quantity": ("quantity",),
    "special_requests": ("specialRequests", "special_requests"),
    "delivery_location": ("deliveryLocation", "delivery_location"),
    "pickup_location": ("pickupLocation", "pickup_location"),
    "basket_name": ("basketName", "basket_name"),
    "pickup_person": ("pickupPerson", "pickup_person", "rider"),
    "notes": ("notes",),
    "total_amount": ("totalAmount", "paymentCost", "total_amount", "payment_cost"),
    "rider_id": ("riderId", "rider_id"),
    "rider_name": ("riderName", "rider_name"),
    "rider_phone": ("riderPhone", "rider_phone"),
    "delivery_status": ("deliveryStatus", "delivery_status", "status"),
    "rider_location": ("riderLocation", "rider_location"),
    "estimated_arrival": ("estimatedArrival", "estimated_arrival"),
    "sender_type": ("sender_type", "senderType"),
    "sender_id": ("sender_id", "senderId"),
    "text": ("text",),
    "since": ("since",),
}
# Kept as sent; everything else is coerced to a string.
STRUCTURED_FIELDS = {"quantity", "total_amount", "special_requests", "rider_location"}


def _is_blank(value):
    return value is None or value == ""


def _first(data, keys):
    for key in keys:
        value = data.get(key)
        if not _is_blank(value):
            return value
    return None


def parse_body(raw):
    """Decode a POST body: a JSON object first, then ``key=value&...`` pairs."""
    if raw is None or not str(raw).strip():
        raise ValidationError("Empty request body")
    text = str(raw).strip()
    try:
        data = json.loads(text)
    except ValueError:
        data = None
    if isinstance(data, dict):
        return data
    pairs = parse_qsl(text, keep_blank_values=True)
    if not pairs:
        raise ValidationError("Malformed request body")
    return dict(pairs)


@dataclass
class ActionRequest:
    action: Optional[str] = None
    order_id: Optional[str] = None
    session_id: Optional[str] = None
    category: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    item_type: Optional[str] = None
    quantity: Any = None
    special_requests: Any = None
    delivery_location: Optional[str] = None
    pickup_location: Optional[str] = None
    basket_name: Optional[str] = None
    pickup_person: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Any = None
    rider_id: Optional[str] = None
    rider_name: Optional[str] = None
    rider_phone: Optional[str] = None
    delivery_status: Optional[str] = None
    rider_location: Any = None
    estimated_arrival: Optional[str] = None
    sender_type: Optional[str] = None
    sender_id: Optional[str] = None
    text: Optional[str] = None
    since: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, data):
        data = data or {}
        values = {}
        for item in fields(cls):
            if item.name == "raw":
                continue
            value = _first(data, ALIASES[item.name])
            if value is not None and item.name not in STRUCTURED_FIELDS:
                value = str(value)
                if item.name not in ("text", "notes"):
                    value = value.strip()
            values[item.name] = value
        return cls(raw=dict(data), **values)

    @property
    def booking_category(self):
        category = str(self.category or "food").lower()
        return category if category in CATEGORIES else "food"

    def build_special_requests(self, category):
        if not _is_blank(self.special_requests):
            if isinstance(self.special_requests, (dict, list)):
                return json.dumps(self.special_requests)
            return str(self.special_requests)
        notes = self.notes or ""
        if category == "laundry":
            blob = {
                "pickupLocation": self.pickup_location or "",
                "basketName": self.basket_name or "",
                "notes": notes,
            }
        elif category == "parcel":
            blob = {"pickupPerson": self.pickup_person or "", "notes": notes}
        else:
            blob = {"pickupLocation": self.pickup_location or "", "notes": notes}
        return json.dumps(blob)

    def booking_fields(self):
        category = self.booking_category
        return {
            "session_id": self.session_id,
            "name": self.customer_name,
            "phone": self.customer_phone,
            "item_type": self.item_type or category.capitalize(),
            "quantity": self.quantity,
            "special_requests": self.build_special_requests(category),
            "delivery_location": self.delivery_location or self.pickup_location or "",
            "total_amount": self.total_amount,
        }
