"""
Пользовательские команды: адреса, ценовые диапазоны, подписка на цену
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from watchbot.config import settings
from watchbot.models.watch import (
    CoinName,
    PriceSubscription,
    PriceWatchEntry,
    WatchEntry,
)
from watchbot.services.address_validation import classify_address, normalize_address
from watchbot.services.errors import (
    DuplicateWatcher,
    InvalidAddress,
    InvalidCoin,
    InvalidPriceRange,
    NotWatching,
    UnsupportedInterval,
)
from watchbot.services.limits import LimitEnforcer
from watchbot.services.subscriptions import NOT_WATCHING_MESSAGE, SubscriptionRefCounter
from watchbot.services.watch_store import DuplicateEntry, WatchStore

logger = logging.getLogger(__name__)

INVALID_ADDRESS_MESSAGE = "Enter a Bitcoin or Ethereum address or /help"
INVALID_COIN_MESSAGE = "Enter a coin (btc/eth) /help"
DUPLICATE_ADDRESS_MESSAGE = "You are already Watching this address /help"
DUPLICATE_PRICE_WATCHER_MESSAGE = (
    "You can't create two price Watchers to one coin. "
    "If you want to change price range values, you should "
    "delete Watcher and add it again /help"
)

_COIN_ALIASES = {
    "btc": CoinName.BITCOIN,
    "bitcoin": CoinName.BITCOIN,
    "eth": CoinName.ETHEREUM,
    "ethereum": CoinName.ETHEREUM,
}


def parse_coin_name(value: str) -> CoinName:
    """btc/bitcoin/eth/ethereum в любом регистре"""
    coin = _COIN_ALIASES.get(str(value).strip().lower())
    if coin is None:
        raise InvalidCoin(INVALID_COIN_MESSAGE)
    return coin


def validate_price_range(price_low: int, price_high: int) -> None:
    if price_low <= 0 or price_high <= 0:
        raise InvalidPriceRange("Prices must be positive numbers /help")
    if price_low >= price_high:
        raise InvalidPriceRange(
            "The low price must be less than the high price, e.g. btc 4000 10000 /help"
        )


class WatchService:
    """
    Сценарии пользовательских команд

    Порядок для адресов: проверка формата -> лимит -> изменение БД ->
    решение о подписке/отписке в фиде.
    """

    def __init__(self, db: Session, feed, limit_enforcer: LimitEnforcer = None):
        self.store = WatchStore(db)
        self.limits = limit_enforcer or LimitEnforcer(self.store)
        self.ref_counter = SubscriptionRefCounter(self.store, feed)

    # Адреса

    async def add_address_watch(self, chat_id: int, address: str) -> WatchEntry:
        """
        Начать отслеживание адреса

        Raises:
            InvalidAddress: адрес не похож ни на bitcoin, ни на ethereum
            LimitExceeded: у чата уже максимум адресов
            DuplicateWatcher: чат уже отслеживает этот адрес
        """
        coin_name = classify_address(address)
        if coin_name is None:
            raise InvalidAddress(INVALID_ADDRESS_MESSAGE)
        address = normalize_address(coin_name, address)

        self.limits.check_address_watch_limit(chat_id)

        try:
            if coin_name == CoinName.BITCOIN:
                async with self.ref_counter.lock:
                    entry = self._create_watch(chat_id, coin_name, address)
                    await self.ref_counter.on_add_bitcoin_watch(address)
            else:
                entry = self._create_watch(chat_id, coin_name, address)
        except DuplicateEntry:
            raise DuplicateWatcher(DUPLICATE_ADDRESS_MESSAGE)

        logger.info(f"Чат {chat_id} отслеживает {coin_name.value} адрес {address}")
        return entry

    def _create_watch(self, chat_id: int, coin_name: CoinName, address: str) -> WatchEntry:
        return self.store.create(
            WatchEntry, chat_id=chat_id, coin_name=coin_name, address=address
        )

    async def remove_address_watch(self, chat_id: int, address: str) -> None:
        """
        Raises:
            NotWatching: чат не отслеживает этот адрес
        """
        coin_name = classify_address(address)
        if coin_name is None:
            raise NotWatching(NOT_WATCHING_MESSAGE)
        address = normalize_address(coin_name, address)

        if coin_name == CoinName.BITCOIN:
            await self.ref_counter.on_remove_bitcoin_watch(chat_id, address)
        else:
            deleted = self.store.destroy(
                WatchEntry, chat_id=chat_id, coin_name=coin_name, address=address
            )
            if not deleted:
                raise NotWatching(NOT_WATCHING_MESSAGE)

        logger.info(f"Чат {chat_id} больше не отслеживает {address}")

    async def remove_all_address_watches(self, chat_id: int) -> int:
        return await self.ref_counter.on_bulk_remove(chat_id)

    def list_address_watches(self, chat_id: int) -> Tuple[List[WatchEntry], int]:
        return self.store.find_and_count(WatchEntry, chat_id=chat_id)

    # Ценовые диапазоны

    def create_price_watcher(
        self, chat_id: int, coin: str, price_low: int, price_high: int
    ) -> PriceWatchEntry:
        """
        Raises:
            InvalidCoin, InvalidPriceRange: некорректные параметры
            DuplicateWatcher: для этой монеты диапазон уже задан
        """
        coin_name = parse_coin_name(coin)
        validate_price_range(price_low, price_high)
        try:
            return self.store.create(
                PriceWatchEntry,
                chat_id=chat_id,
                coin_name=coin_name,
                price_low=price_low,
                price_high=price_high,
            )
        except DuplicateEntry:
            raise DuplicateWatcher(DUPLICATE_PRICE_WATCHER_MESSAGE)

    def delete_price_watcher(self, chat_id: int, coin: str) -> int:
        coin_name = parse_coin_name(coin)
        return self.store.destroy(PriceWatchEntry, chat_id=chat_id, coin_name=coin_name)

    def list_price_watchers(self, chat_id: int) -> Tuple[List[PriceWatchEntry], int]:
        return self.store.find_and_count(PriceWatchEntry, chat_id=chat_id)

    # Подписка на текущую цену

    def get_price_subscription(self, chat_id: int) -> Optional[PriceSubscription]:
        return self.store.find_one(PriceSubscription, chat_id=chat_id)

    def subscribe_actual_price(self, chat_id: int, hours_interval: int) -> PriceSubscription:
        """
        Подписаться на рассылку цены раз в hours_interval часов

        Существующая подписка чата заменяется новой.

        Raises:
            UnsupportedInterval: интервал не из PRICE_SUBSCRIPTION_INTERVALS
        """
        if hours_interval not in settings.PRICE_SUBSCRIPTION_INTERVALS:
            allowed = ", ".join(str(i) for i in settings.PRICE_SUBSCRIPTION_INTERVALS)
            raise UnsupportedInterval(f"Choose an interval of {allowed} hours /help")

        self.store.destroy(PriceSubscription, commit=False, chat_id=chat_id)
        return self.store.create(
            PriceSubscription, chat_id=chat_id, hours_interval=hours_interval
        )

    def unsubscribe_actual_price(self, chat_id: int) -> int:
        return self.store.destroy(PriceSubscription, chat_id=chat_id)
