"""
Классификация адресов по типу монеты
"""

import re
from typing import Optional

from watchbot.models.watch import CoinName

# P2PKH / P2SH (base58) и bech32 / bech32m адреса mainnet
_BTC_BASE58_RE = re.compile(r"^[13][a-km-zA-HJ-NP-Z1-9]{25,34}$")
_BTC_BECH32_RE = re.compile(r"^(bc1|BC1)[02-9ac-hj-np-zAC-HJ-NP-Z]{11,71}$")
_ETH_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_btc_address(address: str) -> bool:
    if _BTC_BASE58_RE.match(address):
        return True
    # bech32 не допускает смешанный регистр
    return bool(_BTC_BECH32_RE.match(address)) and (
        address == address.lower() or address == address.upper()
    )


def is_eth_address(address: str) -> bool:
    return bool(_ETH_RE.match(address))


def classify_address(address: str) -> Optional[CoinName]:
    """
    Определение монеты по формату адреса

    Args:
        address: Адрес в том виде, в котором его прислал пользователь

    Returns:
        CoinName или None, если формат не распознан
    """
    address = address.strip()
    if is_btc_address(address):
        return CoinName.BITCOIN
    if is_eth_address(address):
        return CoinName.ETHEREUM
    return None


def normalize_address(coin_name: CoinName, address: str) -> str:
    """Ethereum адреса храним в нижнем регистре, bitcoin как есть"""
    address = address.strip()
    if coin_name == CoinName.ETHEREUM:
        return address.lower()
    return address
