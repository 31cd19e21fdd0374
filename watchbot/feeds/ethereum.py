"""
Ethereum JSON-RPC клиент: новые блоки и их содержимое
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from watchbot.config import settings

logger = logging.getLogger(__name__)


class EthereumClientError(Exception):
    """Исключение для ошибок Ethereum клиента"""

    pass


class EthereumClient:
    """Клиент ноды Ethereum (HTTP для запросов, websocket для newHeads)"""

    def __init__(
        self,
        rpc_url: str = None,
        ws_url: str = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.rpc_url = rpc_url or settings.ETH_RPC_URL
        self.ws_url = ws_url or settings.ETH_WS_URL
        self._session = session
        self._owns_session = session is None
        self._request_id = 0

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call(self, method: str, *params: Any) -> Dict[str, Any]:
        """
        JSON-RPC вызов

        Returns:
            Полный ответ ноды ({"result": ...} или {"error": ...})
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": list(params),
        }
        try:
            async with self._get_session().post(
                self.rpc_url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=30),
            ) as resp:
                resp.raise_for_status()
                return await resp.json()
        except aiohttp.ClientError as e:
            logger.error(f"JSON RPC ошибка в {method}: {e}")
            raise EthereumClientError(f"RPC ошибка: {e}")

    async def get_block_by_number(self, block_number: str) -> Dict[str, Any]:
        """
        Блок с полными транзакциями

        Args:
            block_number: Номер блока в hex, как его присылает newHeads
        """
        return await self.call("eth_getBlockByNumber", block_number, True)

    async def listen_new_heads(self, on_new_head: Callable[[Dict[str, Any]], Any]) -> None:
        """
        Подписка eth_subscribe("newHeads") и чтение уведомлений до закрытия

        Args:
            on_new_head: Вызывается с уведомлением вида
                {"params": {"result": {"number": ...}}}
        """
        try:
            async with self._get_session().ws_connect(self.ws_url, heartbeat=30) as ws:
                await ws.send_str(
                    json.dumps(
                        {
                            "jsonrpc": "2.0",
                            "id": self._next_id(),
                            "method": "eth_subscribe",
                            "params": ["newHeads"],
                        }
                    )
                )
                logger.info(f"Подписка на newHeads отправлена ({self.ws_url})")

                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        try:
                            data = json.loads(msg.data)
                            if data.get("method") == "eth_subscription":
                                on_new_head(data)
                        except Exception as e:
                            logger.error(f"Ошибка обработки сообщения newHeads: {e}")
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.error(f"Ошибка websocket newHeads: {ws.exception()}")
                        break
        except aiohttp.ClientError as e:
            logger.error(f"Ошибка подключения к {self.ws_url}: {e}")
            raise EthereumClientError(f"Не удалось подключиться: {e}")

        logger.warning("Соединение newHeads закрыто")

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
