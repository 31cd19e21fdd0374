"""
Сопоставление входящих событий с подписками пользователей
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from watchbot.config import settings
from watchbot.models.watch import (
    CoinName,
    PriceSubscription,
    PriceWatchEntry,
    WatchEntry,
)
from watchbot.services import messages
from watchbot.services.dispatcher import NotificationDispatcher
from watchbot.services.watch_store import WatchStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    chat_id: int
    text: str


def addresses_from_btc_transaction(tx: Dict[str, Any]) -> Set[str]:
    """
    Адреса транзакции: входы с известным prev_out и все выходы

    Входы без prev_out (coinbase) и выходы без адреса пропускаются.
    """
    addresses = set()
    for tx_input in tx.get("inputs", []):
        prev_out = tx_input.get("prev_out")
        if prev_out and prev_out.get("addr"):
            addresses.add(prev_out["addr"])
    for output in tx.get("out", []):
        if output.get("addr"):
            addresses.add(output["addr"])
    return addresses


class NotificationMatcher:
    """
    Вычисляет, кому из пользователей отправить уведомление о событии

    match_* методы только считают уведомления, handle_* дополнительно
    передают их диспетчеру.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        dispatcher: NotificationDispatcher,
        eth_client=None,
        block_fetch_delay: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.dispatcher = dispatcher
        self.eth_client = eth_client
        self.block_fetch_delay = (
            block_fetch_delay
            if block_fetch_delay is not None
            else settings.ETH_BLOCK_FETCH_DELAY
        )
        # id записей PriceWatchEntry, уже уведомленных о выходе из диапазона
        self._out_of_range: Dict[CoinName, Set[int]] = {}
        self._block_tasks: Set[asyncio.Task] = set()

    def _dispatch(self, notifications: Iterable[Notification]) -> int:
        count = 0
        for notification in notifications:
            self.dispatcher.send(notification.chat_id, notification.text)
            count += 1
        return count

    # Bitcoin

    def match_bitcoin_transaction(
        self, tx: Dict[str, Any], price_usd: Optional[float]
    ) -> List[Notification]:
        """
        Одно уведомление на каждую подходящую запись WatchEntry

        Если транзакция затрагивает два адреса одного пользователя, он
        получит два уведомления.
        """
        addresses = addresses_from_btc_transaction(tx)
        if not addresses:
            return []

        db = self.session_factory()
        try:
            rows = WatchStore(db).find_all(
                WatchEntry, coin_name=CoinName.BITCOIN, address=addresses
            )
        finally:
            db.close()

        if not rows:
            return []
        text = messages.btc_transaction(tx, price_usd)
        return [Notification(row.chat_id, text) for row in rows]

    def handle_bitcoin_transaction(
        self, tx: Dict[str, Any], price_usd: Optional[float]
    ) -> int:
        return self._dispatch(self.match_bitcoin_transaction(tx, price_usd))

    # Ethereum

    def match_ethereum_block(
        self, new_head: Dict[str, Any], price_usd: Optional[float]
    ) -> "asyncio.Task[List[Notification]]":
        """
        Планирует отложенную обработку нового блока

        Блок запрашивается через block_fetch_delay секунд: сразу после
        newHeads нода может еще не отдать его тело. Задачи разных блоков
        независимы и могут завершаться в любом порядке.

        Args:
            new_head: Уведомление newHeads вида {"params": {"result": {"number": ...}}}
            price_usd: Цена ETH на момент получения уведомления

        Returns:
            Задача, результатом которой будет список отправленных уведомлений
        """
        block_number = new_head["params"]["result"]["number"]
        task = asyncio.create_task(self._process_ethereum_block(block_number, price_usd))
        self._block_tasks.add(task)
        task.add_done_callback(self._block_tasks.discard)
        return task

    async def _process_ethereum_block(
        self, block_number: str, price_usd: Optional[float]
    ) -> List[Notification]:
        await asyncio.sleep(self.block_fetch_delay)
        try:
            block, rows = await asyncio.gather(
                self.eth_client.get_block_by_number(block_number),
                asyncio.to_thread(self._ethereum_rows),
            )
        except Exception as e:
            logger.error(f"Ошибка получения блока {block_number}: {e}")
            return []

        result = (block or {}).get("result")
        if not result:
            logger.debug(f"Блок {block_number} еще недоступен, пропускаем")
            return []

        notifications = self.match_block_transactions(
            result.get("transactions", []), rows, price_usd
        )
        self._dispatch(notifications)
        return notifications

    def _ethereum_rows(self) -> List[WatchEntry]:
        db = self.session_factory()
        try:
            return WatchStore(db).find_all(WatchEntry, coin_name=CoinName.ETHEREUM)
        finally:
            db.close()

    @staticmethod
    def match_block_transactions(
        transactions: List[Dict[str, Any]],
        rows: List[WatchEntry],
        price_usd: Optional[float],
    ) -> List[Notification]:
        """Полный перебор: транзакции x записи"""
        notifications = []
        for tx in transactions:
            for row in rows:
                if row.address == tx.get("from") or row.address == tx.get("to"):
                    notifications.append(
                        Notification(row.chat_id, messages.eth_transaction(tx, price_usd))
                    )
        return notifications

    async def wait_blocks(self) -> None:
        """Дождаться запланированных обработок блоков"""
        if self._block_tasks:
            await asyncio.gather(*list(self._block_tasks), return_exceptions=True)

    # Цены

    def match_price_subscription_tick(
        self, interval_hours: int, price_btc_usd: float, price_eth_usd: float
    ) -> List[Notification]:
        db = self.session_factory()
        try:
            rows = WatchStore(db).find_all(
                PriceSubscription, hours_interval=interval_hours
            )
        finally:
            db.close()

        text = messages.actual_price(price_btc_usd, price_eth_usd)
        return [Notification(row.chat_id, text) for row in rows]

    def handle_price_subscription_tick(
        self, interval_hours: int, price_btc_usd: float, price_eth_usd: float
    ) -> int:
        return self._dispatch(
            self.match_price_subscription_tick(
                interval_hours, price_btc_usd, price_eth_usd
            )
        )

    def match_price_watchers(
        self, coin_name: CoinName, price_usd: float
    ) -> List[Notification]:
        """
        Уведомления о выходе цены из диапазона [price_low, price_high]

        Наблюдатель получает одно уведомление на каждый выход из диапазона и
        снова взводится, когда цена возвращается обратно.
        """
        db = self.session_factory()
        try:
            rows = WatchStore(db).find_all(PriceWatchEntry, coin_name=coin_name)
        finally:
            db.close()

        notified = self._out_of_range.get(coin_name, set())
        still_out = set()
        notifications = []
        for row in rows:
            if row.price_low <= price_usd <= row.price_high:
                continue
            still_out.add(row.id)
            if row.id not in notified:
                notifications.append(
                    Notification(
                        row.chat_id,
                        messages.price_out_of_range(
                            coin_name.value, price_usd, row.price_low, row.price_high
                        ),
                    )
                )

        # Вернувшиеся в диапазон и удаленные записи снова взведены
        self._out_of_range[coin_name] = still_out
        return notifications

    def handle_price_watchers(self, coin_name: CoinName, price_usd: float) -> int:
        return self._dispatch(self.match_price_watchers(coin_name, price_usd))
