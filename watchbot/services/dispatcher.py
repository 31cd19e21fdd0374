"""
Доставка уведомлений пользователям через Telegram
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Set

from telegram import Bot
from telegram.error import Forbidden

logger = logging.getLogger(__name__)


class DeliveryStatus(str, enum.Enum):
    DELIVERED = "delivered"
    BLOCKED = "blocked"
    FAILED = "failed"


@dataclass(frozen=True)
class DeliveryOutcome:
    chat_id: int
    status: DeliveryStatus
    error: str = ""


def is_blocked_by_user(error: Exception) -> bool:
    """Ошибка означает, что пользователь заблокировал бота"""
    return isinstance(error, Forbidden) and "blocked by the user" in str(error)


class NotificationDispatcher:
    """
    Fire-and-forget рассылка

    send() только планирует задачу и сразу возвращает ее; ошибки доставки
    не выходят за пределы диспетчера и не повторяются.
    """

    def __init__(self, bot: Bot):
        self.bot = bot
        self._pending: Set[asyncio.Task] = set()
        self._stats: Dict[str, int] = {status.value: 0 for status in DeliveryStatus}

    @property
    def stats(self) -> Dict[str, Any]:
        """Счетчики исходов доставки"""
        return {**self._stats, "pending": len(self._pending)}

    def send(self, chat_id: int, text: str) -> "asyncio.Task[DeliveryOutcome]":
        """
        Запланировать отправку сообщения

        Args:
            chat_id: Получатель
            text: Готовый текст сообщения

        Returns:
            Задача, результатом которой будет DeliveryOutcome
        """
        task = asyncio.create_task(self._deliver(chat_id, text))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, chat_id: int, text: str) -> DeliveryOutcome:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
            outcome = DeliveryOutcome(chat_id, DeliveryStatus.DELIVERED)
        except Exception as e:
            if is_blocked_by_user(e):
                outcome = DeliveryOutcome(chat_id, DeliveryStatus.BLOCKED, str(e))
            else:
                logger.error(f"Ошибка отправки уведомления в чат {chat_id}: {e}")
                outcome = DeliveryOutcome(chat_id, DeliveryStatus.FAILED, str(e))

        self._stats[outcome.status.value] += 1
        return outcome

    async def drain(self) -> List[DeliveryOutcome]:
        """Дождаться всех отправок, запланированных к этому моменту"""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))
