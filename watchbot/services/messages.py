"""
Тексты уведомлений
"""

from typing import Any, Dict, Optional

SATOSHI = 100_000_000
WEI = 10**18


def _usd(amount: float, price_usd: Optional[float]) -> str:
    if not price_usd:
        return ""
    return f" (${amount * price_usd:,.2f})"


def btc_transaction(tx: Dict[str, Any], price_usd: Optional[float]) -> str:
    lines = ["🔔 New transaction on your Watch List", ""]
    if tx.get("hash"):
        lines.append(f"Tx: {tx['hash']}")
    for output in tx.get("out", []):
        value = output.get("value", 0) / SATOSHI
        lines.append(f"→ {output.get('addr')}: {value:.8f} BTC{_usd(value, price_usd)}")
    return "\n".join(lines)


def eth_transaction(tx: Dict[str, Any], price_usd: Optional[float]) -> str:
    raw_value = tx.get("value") or "0x0"
    value = int(raw_value, 16) / WEI if isinstance(raw_value, str) else raw_value / WEI
    lines = [
        "🔔 New transaction on your Watch List",
        "",
        f"From: {tx.get('from')}",
        f"To: {tx.get('to')}",
        f"Value: {value:.6f} ETH{_usd(value, price_usd)}",
    ]
    if tx.get("hash"):
        lines.append(f"Tx: {tx['hash']}")
    return "\n".join(lines)


def actual_price(price_btc_usd: float, price_eth_usd: float) -> str:
    return (
        "📈 Current price\n\n"
        f"Bitcoin: ${price_btc_usd:,.2f}\n"
        f"Ethereum: ${price_eth_usd:,.2f}"
    )


def price_out_of_range(coin_name: str, price_usd: float, low: int, high: int) -> str:
    direction = "below" if price_usd < low else "above"
    return (
        f"⚠️ {coin_name.capitalize()} price is {direction} your range\n\n"
        f"Now: ${price_usd:,.2f}\n"
        f"Range: {low}-{high} USD"
    )
