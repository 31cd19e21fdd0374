"""
Background задачи: upstream фиды и периодические ценовые рассылки
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI
from telegram import Bot

from watchbot.config import settings
from watchbot.database import SessionLocal, close_db, init_db
from watchbot.feeds.bitcoin import BitcoinFeed
from watchbot.feeds.ethereum import EthereumClient
from watchbot.models.watch import CoinName
from watchbot.services.dispatcher import NotificationDispatcher
from watchbot.services.matcher import NotificationMatcher
from watchbot.services.price_service import PriceService
from watchbot.services.subscriptions import SubscriptionRefCounter
from watchbot.services.watch_store import WatchStore

logger = logging.getLogger(__name__)

# Глобальные объекты процесса
btc_feed = BitcoinFeed()
eth_client = EthereumClient()
price_service = PriceService()
bot: Optional[Bot] = None
dispatcher: Optional[NotificationDispatcher] = None
matcher: Optional[NotificationMatcher] = None

_tasks: List[asyncio.Task] = []
_running = False


def get_bitcoin_feed() -> BitcoinFeed:
    """Dependency для API: фид, в который уходят addr_sub / addr_unsub"""
    return btc_feed


async def bitcoin_feed_task() -> None:
    """Подключение к фиду, восстановление подписок и чтение транзакций"""
    await btc_feed.connect()

    db = SessionLocal()
    try:
        await SubscriptionRefCounter(WatchStore(db), btc_feed).resync_all()
    finally:
        db.close()

    await btc_feed.listen(
        lambda tx: matcher.handle_bitcoin_transaction(
            tx, price_service.get(CoinName.BITCOIN)
        )
    )


async def ethereum_heads_task() -> None:
    """Каждый новый блок планирует отложенную проверку его транзакций"""
    await eth_client.listen_new_heads(
        lambda head: matcher.match_ethereum_block(
            head, price_service.get(CoinName.ETHEREUM)
        )
    )


async def price_check_task(interval: int) -> None:
    """
    Обновление цен и проверка ценовых диапазонов

    Args:
        interval: Интервал между проверками в секундах
    """
    logger.info(f"Запущена проверка цен с интервалом {interval}с")

    while _running:
        try:
            prices = await price_service.refresh()
            for coin_name, price in prices.items():
                sent = matcher.handle_price_watchers(coin_name, price)
                if sent:
                    logger.info(f"{coin_name.value}: {sent} уведомлений о выходе из диапазона")
        except Exception as e:
            logger.error(f"Ошибка в периодической проверке цен: {e}")

        await asyncio.sleep(interval)

    logger.info("Проверка цен остановлена")


async def price_subscription_task(interval_hours: int) -> None:
    """
    Рассылка текущей цены подписчикам с данным интервалом

    Args:
        interval_hours: Интервал подписки в часах
    """
    while _running:
        await asyncio.sleep(interval_hours * 3600)

        price_btc = price_service.get(CoinName.BITCOIN)
        price_eth = price_service.get(CoinName.ETHEREUM)
        if price_btc is None or price_eth is None:
            logger.warning(f"Нет цен для рассылки раз в {interval_hours}ч, пропускаем")
            continue

        try:
            sent = matcher.handle_price_subscription_tick(
                interval_hours, price_btc, price_eth
            )
            logger.info(f"Рассылка цены раз в {interval_hours}ч: {sent} получателей")
        except Exception as e:
            logger.error(f"Ошибка рассылки цены раз в {interval_hours}ч: {e}")


def _log_task_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Background задача {task.get_name()} завершилась с ошибкой: {error}")


async def start_background_tasks() -> None:
    """Запуск всех фоновых задач"""
    global bot, dispatcher, matcher, _running

    if _tasks:
        logger.warning("Background задачи уже запущены")
        return

    _running = True

    bot = Bot(settings.TELEGRAM_BOT_TOKEN)
    await bot.initialize()
    dispatcher = NotificationDispatcher(bot)
    matcher = NotificationMatcher(SessionLocal, dispatcher, eth_client=eth_client)

    coroutines = {
        "bitcoin_feed": bitcoin_feed_task(),
        "ethereum_heads": ethereum_heads_task(),
        "price_check": price_check_task(settings.PRICE_CHECK_INTERVAL),
    }
    for hours in settings.PRICE_SUBSCRIPTION_INTERVALS:
        coroutines[f"price_subscription_{hours}h"] = price_subscription_task(hours)

    for name, coro in coroutines.items():
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(_log_task_result)
        _tasks.append(task)

    logger.info(f"Запущено background задач: {len(_tasks)}")


async def stop_background_tasks() -> None:
    """Остановка всех фоновых задач"""
    global _running

    if not _tasks:
        logger.warning("Background задачи не запущены")
        return

    _running = False
    logger.info("Останавливаем background задачи...")

    try:
        for task in _tasks:
            task.cancel()
        await asyncio.gather(*_tasks, return_exceptions=True)

        # Уже вычисленные уведомления доставляем до конца
        await matcher.wait_blocks()
        await dispatcher.drain()
    except Exception as e:
        logger.error(f"Ошибка при остановке background задач: {e}")
    finally:
        _tasks.clear()
        await btc_feed.close()
        await eth_client.close()
        await price_service.close()
        await bot.shutdown()
        logger.info("Background задачи остановлены")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Контекстный менеджер жизненного цикла приложения

    Создает таблицы, запускает фиды при старте и останавливает их при
    завершении
    """
    logger.info("Запуск приложения...")
    init_db()

    try:
        if settings.FEEDS_ENABLED:
            await start_background_tasks()
        logger.info("Приложение запущено успешно")

        yield

    finally:
        logger.info("Остановка приложения...")
        if settings.FEEDS_ENABLED:
            await stop_background_tasks()
        close_db()
        logger.info("Приложение остановлено")
