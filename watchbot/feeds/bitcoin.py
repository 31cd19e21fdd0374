"""
Websocket фид неподтвержденных bitcoin транзакций по адресам
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from watchbot.config import settings

logger = logging.getLogger(__name__)


class BitcoinFeedError(Exception):
    """Исключение для ошибок фида"""

    pass


class BitcoinFeed:
    """
    Клиент фида с протоколом addr_sub / addr_unsub

    Команды fire-and-forget: подтверждений фид не присылает. Переподключение
    не выполняется, после нового connect() подписки восстанавливаются
    через SubscriptionRefCounter.resync_all().
    """

    def __init__(
        self, url: str = None, session: Optional[aiohttp.ClientSession] = None
    ):
        self.url = url or settings.BTC_WS_URL
        self._session = session
        self._owns_session = session is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(self.url, heartbeat=30)
        except aiohttp.ClientError as e:
            logger.error(f"Ошибка подключения к bitcoin фиду {self.url}: {e}")
            raise BitcoinFeedError(f"Не удалось подключиться к фиду: {e}")
        logger.info(f"Подключено к bitcoin фиду {self.url}")

    async def _send(self, payload: Dict[str, Any]) -> None:
        if not self.connected:
            logger.warning(f"Фид не подключен, команда пропущена: {payload}")
            return
        try:
            await self._ws.send_str(json.dumps(payload))
        except (aiohttp.ClientError, ConnectionError) as e:
            # Запись в БД уже зафиксирована, подписки вернет resync_all()
            logger.error(f"Не удалось отправить команду {payload} в фид: {e}")

    async def subscribe(self, address: str) -> None:
        await self._send({"op": "addr_sub", "addr": address})

    async def unsubscribe(self, address: str) -> None:
        await self._send({"op": "addr_unsub", "addr": address})

    async def listen(self, on_transaction: Callable[[Dict[str, Any]], Any]) -> None:
        """
        Читать сообщения фида до закрытия соединения

        Args:
            on_transaction: Вызывается с телом транзакции для каждого utx
        """
        if not self.connected:
            raise BitcoinFeedError("Фид не подключен")

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    data = json.loads(msg.data)
                except ValueError:
                    logger.warning(f"Некорректное сообщение фида: {msg.data[:200]}")
                    continue
                if data.get("op") != "utx":
                    continue
                try:
                    on_transaction(data["x"])
                except Exception as e:
                    logger.error(f"Ошибка обработки транзакции из фида: {e}")
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.error(f"Ошибка websocket фида: {self._ws.exception()}")
                break

        logger.warning("Соединение с bitcoin фидом закрыто")

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        logger.info("Bitcoin фид закрыт")
