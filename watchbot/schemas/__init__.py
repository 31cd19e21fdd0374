# Pydantic schemas package

from .watch import (
    AddressWatch,
    AddressWatchCreate,
    AddressWatchList,
    PriceSubscription,
    PriceSubscriptionUpdate,
    PriceWatcher,
    PriceWatcherCreate,
    PriceWatcherList,
)

__all__ = [
    # Address watch schemas
    "AddressWatch",
    "AddressWatchCreate",
    "AddressWatchList",
    # Price watcher schemas
    "PriceWatcher",
    "PriceWatcherCreate",
    "PriceWatcherList",
    # Price subscription schemas
    "PriceSubscription",
    "PriceSubscriptionUpdate",
]
