"""
Ошибки, сообщение которых показывается пользователю как есть
"""


class WatchServiceError(Exception):
    """Базовое исключение пользовательских команд"""

    pass


class InvalidAddress(WatchServiceError):
    pass


class LimitExceeded(WatchServiceError):
    """Пользователь достиг лимита отслеживаемых адресов"""

    pass


class NotWatching(WatchServiceError):
    pass


class DuplicateWatcher(WatchServiceError):
    pass


class InvalidPriceRange(WatchServiceError):
    pass


class UnsupportedInterval(WatchServiceError):
    pass


class InvalidCoin(WatchServiceError):
    pass
