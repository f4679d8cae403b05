from aupgrab.models.booking import BOOKING_MODELS, FoodBooking, LaundryBooking, ParcelBooking
from aupgrab.models.delivery import Delivery
from aupgrab.models.message import Message

__all__ = [
    "BOOKING_MODELS",
    "FoodBooking",
    "ParcelBooking",
    "LaundryBooking",
    "Delivery",
    "Message",
]
