# Upstream feeds package

from watchbot.feeds.bitcoin import BitcoinFeed, BitcoinFeedError
from watchbot.feeds.ethereum import EthereumClient, EthereumClientError

__all__ = ["BitcoinFeed", "BitcoinFeedError", "EthereumClient", "EthereumClientError"]
