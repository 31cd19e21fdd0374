# Business logic services package

from watchbot.services.dispatcher import (
    DeliveryOutcome,
    DeliveryStatus,
    NotificationDispatcher,
)
from watchbot.services.limits import LimitEnforcer
from watchbot.services.matcher import Notification, NotificationMatcher
from watchbot.services.subscriptions import SubscriptionRefCounter
from watchbot.services.watch_service import WatchService
from watchbot.services.watch_store import DuplicateEntry, WatchStore

__all__ = [
    "DeliveryOutcome",
    "DeliveryStatus",
    "DuplicateEntry",
    "LimitEnforcer",
    "Notification",
    "NotificationDispatcher",
    "NotificationMatcher",
    "SubscriptionRefCounter",
    "WatchService",
    "WatchStore",
]
