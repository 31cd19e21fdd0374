"""
Общие вспомогательные объекты для тестов
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from watchbot import models  # noqa: F401
from watchbot.database import Base

BTC_ADDRESS_A = "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
BTC_ADDRESS_B = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
BTC_ADDRESS_C = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"
ETH_ADDRESS_UPPER = "0xABCDEF0123456789ABCDEF0123456789ABCDEF01"
ETH_ADDRESS_LOWER = ETH_ADDRESS_UPPER.lower()


def eth_address(n: int) -> str:
    """Уникальный валидный ethereum адрес"""
    return "0x" + f"{n:040x}"


def make_session_factory():
    """Фабрика сессий поверх чистой in-memory SQLite"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeFeed:
    """Фид, запоминающий отправленные команды"""

    def __init__(self):
        self.commands = []

    async def subscribe(self, address: str) -> None:
        self.commands.append(("addr_sub", address))

    async def unsubscribe(self, address: str) -> None:
        self.commands.append(("addr_unsub", address))

    def sent(self, op: str):
        return [addr for command, addr in self.commands if command == op]
