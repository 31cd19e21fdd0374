"""
Ограничение количества отслеживаемых адресов на пользователя
"""

import logging

from watchbot.config import settings
from watchbot.models.watch import WatchEntry
from watchbot.services.errors import LimitExceeded
from watchbot.services.watch_store import WatchStore

logger = logging.getLogger(__name__)


class LimitEnforcer:
    """Проверка лимита до любых изменений в хранилище"""

    def __init__(self, store: WatchStore, max_watches: int = None):
        self.store = store
        self.max_watches = (
            max_watches if max_watches is not None else settings.MAX_ADDRESS_WATCHES
        )

    def check_address_watch_limit(self, chat_id: int) -> None:
        """
        Raises:
            LimitExceeded: если у чата уже max_watches адресов или больше
        """
        user_rows = self.store.count(WatchEntry, chat_id=chat_id)
        if user_rows >= self.max_watches:
            logger.info(f"Чат {chat_id} достиг лимита адресов ({user_rows})")
            raise LimitExceeded(
                f"Error. You can set maximum {self.max_watches} "
                "addresses to Watch List. Please delete some of them /help"
            )
