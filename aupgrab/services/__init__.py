from datetime import timedelta

from aupgrab.repositories import MessageRepository, OrderRepository, TrackingRepository
from aupgrab.services.booking_service import BookingService
from aupgrab.services.chat_service import ChatService
from aupgrab.services.dispatch import DeliverySweep, RandomEtaStrategy, rider_strategy_from_config
from aupgrab.services.router import RequestRouter
from aupgrab.services.tracking_service import TrackingService


class Services:
    """Repositories and services wired once per process."""

    def __init__(self, session, config):
        self.orders = OrderRepository(session)
        self.deliveries = TrackingRepository(session)
        self.messages = MessageRepository(session)

        self.tracking = TrackingService(self.deliveries, session)
        self.bookings = BookingService(self.orders, self.tracking, session)
        self.chat = ChatService(self.messages, session)
        self.router = RequestRouter(self.bookings, self.tracking, self.chat, session)
        self.sweep = DeliverySweep(
            self.orders,
            self.bookings,
            session,
            rider_strategy=rider_strategy_from_config(config.get("DISPATCH_STRATEGY"), config.get("RIDER_POOL", [])),
            eta_strategy=RandomEtaStrategy(config.get("ETA_MIN_MINUTES", 25), config.get("ETA_MAX_MINUTES", 45)),
            pending_after=timedelta(minutes=config.get("AUTO_ASSIGN_AFTER_MINUTES", 5)),
        )


__all__ = [
    "BookingService",
    "ChatService",
    "DeliverySweep",
    "RequestRouter",
    "Services",
    "TrackingService",
]
