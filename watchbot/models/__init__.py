# Database models package

from .watch import CoinName, PriceSubscription, PriceWatchEntry, WatchEntry

__all__ = ["CoinName", "WatchEntry", "PriceWatchEntry", "PriceSubscription"]
