"""
Текущие цены BTC и ETH в долларах
"""

import logging
import time
from typing import Dict, Optional

import aiohttp

from watchbot.config import settings
from watchbot.models.watch import CoinName

logger = logging.getLogger(__name__)


class PriceServiceError(Exception):
    """Исключение для ошибок получения цен"""

    pass


class PriceService:
    """Последние известные цены, обновляемые запросом к API"""

    def __init__(self, url: str = None, session: Optional[aiohttp.ClientSession] = None):
        self.url = url or settings.PRICE_API_URL
        self._session = session
        self._owns_session = session is None
        self._prices: Dict[CoinName, float] = {}
        self._updated_at: Optional[float] = None

    def get(self, coin_name: CoinName) -> Optional[float]:
        """Последняя цена или None, если цены еще не загружены"""
        return self._prices.get(coin_name)

    @property
    def updated_at(self) -> Optional[float]:
        return self._updated_at

    async def refresh(self) -> Dict[CoinName, float]:
        """
        Запросить актуальные цены

        Raises:
            PriceServiceError: API недоступно или вернуло неожиданный ответ
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()

        params = {
            "ids": ",".join(coin.value for coin in CoinName),
            "vs_currencies": "usd",
        }
        try:
            async with self._session.get(
                self.url, params=params, timeout=aiohttp.ClientTimeout(total=15)
            ) as resp:
                resp.raise_for_status()
                data = await resp.json()
        except aiohttp.ClientError as e:
            logger.warning(f"Не удалось получить цены: {e}")
            raise PriceServiceError(f"Ошибка запроса цен: {e}")

        try:
            prices = {coin: float(data[coin.value]["usd"]) for coin in CoinName}
        except (KeyError, TypeError, ValueError) as e:
            raise PriceServiceError(f"Неожиданный ответ API цен: {e}")

        self._prices = prices
        self._updated_at = time.time()
        logger.debug(f"Цены обновлены: {prices}")
        return prices

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
