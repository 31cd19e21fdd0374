"""
Управление подписками на upstream фид bitcoin адресов

Подписка отправляется на каждое добавление (фид считает повторную подписку
no-op), отписка только когда адрес перестал отслеживать последний чат.
"""

import asyncio
import logging
from typing import List

from watchbot.models.watch import CoinName, WatchEntry
from watchbot.services.errors import NotWatching
from watchbot.services.watch_store import WatchStore

logger = logging.getLogger(__name__)

NOT_WATCHING_MESSAGE = "You are not Watching this address to delete them /help"

# Общий для всех запросов процесса: подсчет и удаление должны идти одним шагом
_refcount_lock = asyncio.Lock()


class SubscriptionRefCounter:
    """Решает, когда отправлять addr_sub / addr_unsub в фид"""

    def __init__(self, store: WatchStore, feed, lock: asyncio.Lock = None):
        """
        Args:
            store: Хранилище подписок
            feed: Объект с корутинами subscribe(address) и unsubscribe(address)
            lock: Блокировка, сериализующая изменения счетчиков
        """
        self.store = store
        self.feed = feed
        self.lock = lock or _refcount_lock

    async def on_add_bitcoin_watch(self, address: str) -> None:
        await self.feed.subscribe(address)

    async def on_remove_bitcoin_watch(self, chat_id: int, address: str) -> bool:
        """
        Удаление отслеживания адреса чатом с отпиской при необходимости

        Args:
            chat_id: Чат, который перестает отслеживать адрес
            address: Bitcoin адрес

        Returns:
            True если была отправлена отписка

        Raises:
            NotWatching: если чат не отслеживает этот адрес
        """
        async with self.lock:
            row = self.store.find_one(
                WatchEntry, chat_id=chat_id, coin_name=CoinName.BITCOIN, address=address
            )
            if row is None:
                raise NotWatching(NOT_WATCHING_MESSAGE)

            others = (
                self.store.count(WatchEntry, coin_name=CoinName.BITCOIN, address=address)
                - 1
            )
            self.store.destroy(WatchEntry, id=row.id)

            if others == 0:
                await self.feed.unsubscribe(address)
                return True
            logger.debug(f"Адрес {address} отслеживают еще {others} чатов")
            return False

    async def on_bulk_remove(self, chat_id: int) -> int:
        """
        Удаление всех адресов чата

        Returns:
            Количество удаленных записей
        """
        async with self.lock:
            rows = self.store.find_all(WatchEntry, chat_id=chat_id)
            to_unsubscribe: List[str] = []
            for row in rows:
                if row.coin_name != CoinName.BITCOIN:
                    continue
                watchers = self.store.count(
                    WatchEntry, coin_name=CoinName.BITCOIN, address=row.address
                )
                if watchers == 1:
                    to_unsubscribe.append(row.address)

            deleted = self.store.destroy(WatchEntry, chat_id=chat_id)

            for address in to_unsubscribe:
                await self.feed.unsubscribe(address)

        logger.info(
            f"Чат {chat_id}: удалено {deleted} адресов, отписок {len(to_unsubscribe)}"
        )
        return deleted

    async def resync_all(self) -> int:
        """
        Повторная подписка на все сохраненные bitcoin адреса

        Фид не умеет отдавать список текущих подписок, поэтому после
        (пере)подключения состояние восстанавливается целиком из БД.

        Returns:
            Количество отправленных подписок
        """
        rows = self.store.find_all(WatchEntry, coin_name=CoinName.BITCOIN)
        addresses = list(dict.fromkeys(row.address for row in rows))
        for address in addresses:
            await self.feed.subscribe(address)
        logger.info(f"Восстановлены подписки на {len(addresses)} bitcoin адресов")
        return len(addresses)
