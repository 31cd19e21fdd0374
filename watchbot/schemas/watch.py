"""
Pydantic схемы подписок пользователей
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from watchbot.models.watch import CoinName


class AddressWatchCreate(BaseModel):
    """Схема для добавления адреса"""

    address: str = Field(..., min_length=1, description="Bitcoin или Ethereum адрес")


class AddressWatch(BaseModel):
    """Отслеживаемый адрес"""

    id: int
    chat_id: int
    coin_name: CoinName
    address: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AddressWatchList(BaseModel):
    """Адреса чата"""

    chat_id: int
    watches: List[AddressWatch]
    count: int
    limit: int


class PriceWatcherCreate(BaseModel):
    """Схема для создания ценового диапазона"""

    coin: str = Field(..., description="btc/bitcoin или eth/ethereum")
    price_low: int = Field(..., description="Нижняя граница, USD")
    price_high: int = Field(..., description="Верхняя граница, USD")


class PriceWatcher(BaseModel):
    """Ценовой диапазон"""

    id: int
    chat_id: int
    coin_name: CoinName
    price_low: int
    price_high: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PriceWatcherList(BaseModel):
    """Ценовые диапазоны чата"""

    chat_id: int
    price_watchers: List[PriceWatcher]
    count: int


class PriceSubscriptionUpdate(BaseModel):
    """Схема подписки на рассылку цены"""

    hours_interval: int = Field(..., ge=1, description="Интервал рассылки в часах")


class PriceSubscription(BaseModel):
    """Подписка на рассылку цены"""

    id: int
    chat_id: int
    hours_interval: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
