"""
Тесты сопоставления событий с подписками
"""

import unittest
from unittest.mock import AsyncMock, MagicMock

from tests.helpers import (
    BTC_ADDRESS_A,
    BTC_ADDRESS_B,
    BTC_ADDRESS_C,
    ETH_ADDRESS_LOWER,
    ETH_ADDRESS_UPPER,
    FakeFeed,
    eth_address,
    make_session_factory,
)
from watchbot.models.watch import CoinName, PriceSubscription, PriceWatchEntry
from watchbot.services.matcher import NotificationMatcher, addresses_from_btc_transaction
from watchbot.services.watch_service import WatchService
from watchbot.services.watch_store import WatchStore


def btc_tx(inputs, outputs):
    return {
        "hash": "f4184fc596403b9d638783cf57adfe4c75c605f6356fbc91338530e9831e9e16",
        "inputs": [{"prev_out": {"addr": addr, "value": 1000}} for addr in inputs],
        "out": [{"addr": addr, "value": 5000} for addr in outputs],
    }


class MatcherTestCase(unittest.IsolatedAsyncioTestCase):
    """Общая подготовка: БД, сервис команд и матчер с mock диспетчером"""

    def setUp(self):
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.service = WatchService(self.db, FakeFeed())
        self.dispatcher = MagicMock()
        self.eth_client = MagicMock()
        self.matcher = NotificationMatcher(
            self.session_factory,
            self.dispatcher,
            eth_client=self.eth_client,
            block_fetch_delay=0,
        )

    def tearDown(self):
        self.db.close()


class TestBitcoinMatching(MatcherTestCase):
    """Тесты bitcoin транзакций"""

    def test_addresses_from_transaction(self):
        """Тест извлечения адресов из транзакции"""
        tx = {
            "inputs": [{"prev_out": {"addr": BTC_ADDRESS_A}}, {"sequence": 1}],
            "out": [{"addr": BTC_ADDRESS_B}, {"script": "6a"}],
        }

        self.assertEqual(addresses_from_btc_transaction(tx), {BTC_ADDRESS_A, BTC_ADDRESS_B})

    async def test_one_notification_per_chat(self):
        """Тест уведомления каждому подходящему чату"""
        await self.service.add_address_watch(1, BTC_ADDRESS_A)
        await self.service.add_address_watch(2, BTC_ADDRESS_B)
        await self.service.add_address_watch(3, BTC_ADDRESS_C)

        notifications = self.matcher.match_bitcoin_transaction(
            btc_tx([BTC_ADDRESS_A], [BTC_ADDRESS_B]), 30000.0
        )

        self.assertEqual(sorted(n.chat_id for n in notifications), [1, 2])

    async def test_same_chat_two_addresses_not_deduplicated(self):
        """Тест двух уведомлений при двух адресах одного чата"""
        await self.service.add_address_watch(1, BTC_ADDRESS_A)
        await self.service.add_address_watch(1, BTC_ADDRESS_B)

        notifications = self.matcher.match_bitcoin_transaction(
            btc_tx([BTC_ADDRESS_A], [BTC_ADDRESS_B]), None
        )

        self.assertEqual([n.chat_id for n in notifications], [1, 1])

    async def test_input_without_prev_out_is_skipped(self):
        """Тест пропуска входа без prev_out"""
        await self.service.add_address_watch(1, BTC_ADDRESS_A)
        tx = {"inputs": [{}], "out": [{"addr": BTC_ADDRESS_C}]}

        self.assertEqual(self.matcher.match_bitcoin_transaction(tx, None), [])

    async def test_ethereum_watch_with_same_address_is_ignored(self):
        """Тест игнорирования ethereum записей для bitcoin транзакций"""
        # ethereum записи не участвуют в bitcoin сопоставлении
        await self.service.add_address_watch(1, ETH_ADDRESS_LOWER)
        tx = {"inputs": [], "out": [{"addr": ETH_ADDRESS_LOWER}]}

        self.assertEqual(self.matcher.match_bitcoin_transaction(tx, None), [])

    async def test_handle_dispatches(self):
        """Тест передачи уведомлений диспетчеру"""
        await self.service.add_address_watch(1, BTC_ADDRESS_A)
        await self.service.add_address_watch(2, BTC_ADDRESS_A)

        sent = self.matcher.handle_bitcoin_transaction(btc_tx([], [BTC_ADDRESS_A]), 30000.0)

        self.assertEqual(sent, 2)
        chats = sorted(c.args[0] for c in self.dispatcher.send.call_args_list)
        self.assertEqual(chats, [1, 2])
        self.assertIn("$1.50", self.dispatcher.send.call_args_list[0].args[1])


class TestEthereumMatching(MatcherTestCase):
    """Тесты отложенной обработки ethereum блоков"""

    new_head = {"params": {"result": {"number": "0x112a880"}}}

    async def test_uppercase_watch_matches_lowercase_from(self):
        """Тест совпадения адреса без учета регистра"""
        await self.service.add_address_watch(1, ETH_ADDRESS_UPPER)
        await self.service.add_address_watch(2, eth_address(7))
        self.eth_client.get_block_by_number = AsyncMock(
            return_value={
                "result": {
                    "transactions": [
                        {"from": ETH_ADDRESS_LOWER, "to": eth_address(99), "value": "0x0"},
                    ]
                }
            }
        )

        notifications = await self.matcher.match_ethereum_block(self.new_head, 2000.0)

        self.eth_client.get_block_by_number.assert_awaited_once_with("0x112a880")
        self.assertEqual([n.chat_id for n in notifications], [1])
        self.dispatcher.send.assert_called_once()

    async def test_each_transaction_and_entry_pair(self):
        """Тест уведомления на каждую пару транзакция-запись"""
        await self.service.add_address_watch(1, eth_address(1))
        await self.service.add_address_watch(2, eth_address(2))
        self.eth_client.get_block_by_number = AsyncMock(
            return_value={
                "result": {
                    "transactions": [
                        {"from": eth_address(1), "to": eth_address(2), "value": "0xde0b6b3a7640000"},
                        {"from": eth_address(3), "to": eth_address(1), "value": "0x0"},
                        {"from": eth_address(3), "to": None, "value": "0x0"},
                    ]
                }
            }
        )

        notifications = await self.matcher.match_ethereum_block(self.new_head, None)

        self.assertEqual(sorted(n.chat_id for n in notifications), [1, 1, 2])
        self.assertIn("1.000000 ETH", notifications[0].text)

    async def test_block_not_available_is_dropped(self):
        """Тест пропуска недоступного блока"""
        await self.service.add_address_watch(1, eth_address(1))
        self.eth_client.get_block_by_number = AsyncMock(
            return_value={"jsonrpc": "2.0", "id": 1, "result": None}
        )

        notifications = await self.matcher.match_ethereum_block(self.new_head, None)

        self.assertEqual(notifications, [])
        self.dispatcher.send.assert_not_called()

    async def test_fetch_error_is_dropped(self):
        """Тест пропуска блока при ошибке запроса"""
        self.eth_client.get_block_by_number = AsyncMock(side_effect=RuntimeError("boom"))

        with self.assertLogs("watchbot.services.matcher", level="ERROR"):
            notifications = await self.matcher.match_ethereum_block(self.new_head, None)

        self.assertEqual(notifications, [])

    async def test_wait_blocks(self):
        """Тест ожидания отложенных обработок блоков"""
        self.eth_client.get_block_by_number = AsyncMock(return_value={})

        task = self.matcher.match_ethereum_block(self.new_head, None)
        await self.matcher.wait_blocks()

        self.assertTrue(task.done())


class TestPriceMatching(MatcherTestCase):
    """Тесты ценовых уведомлений"""

    def _store(self):
        return WatchStore(self.db)

    def test_price_subscription_tick(self):
        """Тест рассылки цены подписчикам интервала"""
        store = self._store()
        store.create(PriceSubscription, chat_id=1, hours_interval=1)
        store.create(PriceSubscription, chat_id=2, hours_interval=6)
        store.create(PriceSubscription, chat_id=3, hours_interval=1)

        notifications = self.matcher.match_price_subscription_tick(1, 30000.0, 2000.0)

        self.assertEqual([n.chat_id for n in notifications], [1, 3])
        self.assertIn("$30,000.00", notifications[0].text)
        self.assertIn("$2,000.00", notifications[0].text)

    def test_handle_price_subscription_tick(self):
        """Тест передачи рассылки цены диспетчеру"""
        self._store().create(PriceSubscription, chat_id=5, hours_interval=24)

        self.assertEqual(self.matcher.handle_price_subscription_tick(24, 1.0, 1.0), 1)
        self.dispatcher.send.assert_called_once()

    def test_price_watcher_notifies_once_per_excursion(self):
        """Тест одного уведомления на выход из диапазона"""
        self._store().create(
            PriceWatchEntry,
            chat_id=1,
            coin_name=CoinName.BITCOIN,
            price_low=4000,
            price_high=10000,
        )

        self.assertEqual(self.matcher.match_price_watchers(CoinName.BITCOIN, 5000), [])

        above = self.matcher.match_price_watchers(CoinName.BITCOIN, 10500)
        self.assertEqual([n.chat_id for n in above], [1])
        self.assertIn("above", above[0].text)

        # все еще вне диапазона: повторно не уведомляем
        self.assertEqual(self.matcher.match_price_watchers(CoinName.BITCOIN, 11000), [])

        self.assertEqual(self.matcher.match_price_watchers(CoinName.BITCOIN, 9000), [])
        below = self.matcher.match_price_watchers(CoinName.BITCOIN, 3000)
        self.assertEqual([n.chat_id for n in below], [1])
        self.assertIn("below", below[0].text)

    def test_price_watcher_other_coin_untouched(self):
        """Тест независимости диапазонов разных монет"""
        self._store().create(
            PriceWatchEntry,
            chat_id=1,
            coin_name=CoinName.ETHEREUM,
            price_low=100,
            price_high=200,
        )

        self.assertEqual(self.matcher.match_price_watchers(CoinName.BITCOIN, 50), [])
        self.assertEqual(len(self.matcher.match_price_watchers(CoinName.ETHEREUM, 50)), 1)

    def test_replaced_price_watcher_is_armed(self):
        """Тест уведомления для нового диапазона после удаления старого"""
        first = self.service.create_price_watcher(1, "btc", 4000, 10000)
        first_id = first.id
        self.assertEqual(len(self.matcher.match_price_watchers(CoinName.BITCOIN, 12000)), 1)

        self.service.delete_price_watcher(1, "btc")
        replacement = self.service.create_price_watcher(1, "btc", 1000, 2000)
        notifications = self.matcher.match_price_watchers(CoinName.BITCOIN, 12000)

        # id удаленной записи не переиспользуется
        self.assertNotEqual(replacement.id, first_id)
        self.assertEqual([n.chat_id for n in notifications], [1])
        self.assertIn("1000-2000", notifications[0].text)


if __name__ == "__main__":
    unittest.main()
