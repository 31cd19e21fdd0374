"""
Тесты доставки уведомлений
"""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from telegram.error import Forbidden, NetworkError

from watchbot.services.dispatcher import (
    DeliveryStatus,
    NotificationDispatcher,
    is_blocked_by_user,
)

LOGGER = "watchbot.services.dispatcher"


class TestNotificationDispatcher(unittest.IsolatedAsyncioTestCase):
    """Тесты fire-and-forget отправки"""

    def setUp(self):
        self.bot = MagicMock()
        self.bot.send_message = AsyncMock()
        self.dispatcher = NotificationDispatcher(self.bot)

    async def test_delivered(self):
        """Тест успешной доставки"""
        task = self.dispatcher.send(1, "hello")
        outcome = await task

        self.assertEqual(outcome.status, DeliveryStatus.DELIVERED)
        self.bot.send_message.assert_awaited_once_with(chat_id=1, text="hello")
        self.assertEqual(self.dispatcher.stats["delivered"], 1)

    async def test_send_does_not_wait_for_delivery(self):
        """Тест отправки без ожидания доставки"""
        release = asyncio.Event()

        async def slow_send(**kwargs):
            await release.wait()

        self.bot.send_message = AsyncMock(side_effect=slow_send)

        task = self.dispatcher.send(1, "slow")
        self.dispatcher.send(2, "also slow")
        await asyncio.sleep(0)

        self.assertFalse(task.done())
        self.assertEqual(self.dispatcher.stats["pending"], 2)

        release.set()
        outcomes = await self.dispatcher.drain()
        self.assertEqual(sorted(o.chat_id for o in outcomes), [1, 2])
        self.assertEqual(self.dispatcher.stats["pending"], 0)

    async def test_blocked_is_silent(self):
        """Тест молчаливой обработки блокировки бота"""
        self.bot.send_message = AsyncMock(
            side_effect=Forbidden("Forbidden: bot was blocked by the user")
        )

        with self.assertNoLogs(LOGGER, level="ERROR"):
            outcome = await self.dispatcher.send(1, "hello")

        self.assertEqual(outcome.status, DeliveryStatus.BLOCKED)

    async def test_other_failure_logged_not_raised(self):
        """Тест логирования прочих ошибок доставки"""
        self.bot.send_message = AsyncMock(side_effect=NetworkError("timed out"))

        with self.assertLogs(LOGGER, level="ERROR") as logs:
            outcome = await self.dispatcher.send(7, "hello")

        self.assertEqual(outcome.status, DeliveryStatus.FAILED)
        self.assertIn("7", logs.output[0])
        self.assertEqual(self.dispatcher.stats["failed"], 1)

    async def test_one_failure_does_not_affect_others(self):
        """Тест независимости отправок друг от друга"""
        self.bot.send_message = AsyncMock(
            side_effect=[NetworkError("timed out"), None, None]
        )

        with self.assertLogs(LOGGER, level="ERROR"):
            for chat_id in (1, 2, 3):
                self.dispatcher.send(chat_id, "text")
            outcomes = await self.dispatcher.drain()

        statuses = sorted(o.status.value for o in outcomes)
        self.assertEqual(statuses, ["delivered", "delivered", "failed"])

    async def test_drain_without_pending(self):
        """Тест drain без ожидающих отправок"""
        self.assertEqual(await self.dispatcher.drain(), [])

    def test_is_blocked_by_user(self):
        """Тест распознавания блокировки бота пользователем"""
        self.assertTrue(is_blocked_by_user(Forbidden("Forbidden: bot was blocked by the user")))
        self.assertFalse(is_blocked_by_user(Forbidden("Forbidden: bot was kicked from the group chat")))
        self.assertFalse(is_blocked_by_user(RuntimeError("bot was blocked by the user")))


if __name__ == "__main__":
    unittest.main()
