from aupgrab.repositories.messages import MessageRepository
from aupgrab.repositories.orders import OrderRepository
from aupgrab.repositories.tracking import TrackingRepository

__all__ = [
    "MessageRepository",
    "OrderRepository",
    "TrackingRepository",
]
