"""
SQLAlchemy модели подписок пользователей
"""

import enum

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from watchbot.database import Base


class CoinName(str, enum.Enum):
    """Поддерживаемые монеты"""

    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"


def _coin_column(**kwargs) -> Column:
    return Column(
        Enum(
            CoinName,
            native_enum=False,
            length=16,
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs,
    )


class WatchEntry(Base):
    """Отслеживание адреса пользователем"""

    __tablename__ = "addr_watch_list"
    __table_args__ = (
        UniqueConstraint("chat_id", "address", name="uq_addr_watch_chat_address"),
    )

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(BigInteger, nullable=False, index=True)
    coin_name = _coin_column(nullable=False, index=True)
    address = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return (
            f"<WatchEntry(chat_id={self.chat_id}, coin='{self.coin_name}', "
            f"address='{self.address}')>"
        )


class PriceWatchEntry(Base):
    """Ценовой диапазон, при выходе из которого пользователь получает уведомление"""

    __tablename__ = "price_watch_list"
    __table_args__ = (
        UniqueConstraint("chat_id", "coin_name", name="uq_price_watch_chat_coin"),
        # id удаленной записи не переиспользуется: по нему матчер помнит уведомленных
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(BigInteger, nullable=False, index=True)
    coin_name = _coin_column(nullable=False)
    price_low = Column(BigInteger, nullable=False)  # USD
    price_high = Column(BigInteger, nullable=False)  # USD
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return (
            f"<PriceWatchEntry(chat_id={self.chat_id}, coin='{self.coin_name}', "
            f"range={self.price_low}-{self.price_high})>"
        )


class PriceSubscription(Base):
    """Периодическая рассылка текущей цены"""

    __tablename__ = "subscribe_actual_price"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(BigInteger, unique=True, nullable=False)
    hours_interval = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return (
            f"<PriceSubscription(chat_id={self.chat_id}, "
            f"hours_interval={self.hours_interval})>"
        )
