"""
Конфигурация сервиса уведомлений о криптоадресах
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Настройки приложения"""

    # Общие настройки
    PROJECT_NAME: str = "Crypto Watch Notifier"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api"

    # База данных
    DATABASE_URL: str = "sqlite:///./watchbot.db"

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""

    # Upstream фиды
    BTC_WS_URL: str = "wss://ws.blockchain.info/inv"
    ETH_WS_URL: str = "wss://mainnet.infura.io/ws/v3/your_project_id"
    ETH_RPC_URL: str = "https://mainnet.infura.io/v3/your_project_id"
    ETH_BLOCK_FETCH_DELAY: float = 30.0  # секунды, нода должна успеть проиндексировать блок
    FEEDS_ENABLED: bool = True

    # Лимиты
    MAX_ADDRESS_WATCHES: int = 50

    # Цены
    PRICE_API_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    PRICE_CHECK_INTERVAL: int = 60  # секунды
    PRICE_SUBSCRIPTION_INTERVALS: list[int] = [1, 3, 6, 12, 24]  # часы

    # Debug режим
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True


# Глобальный экземпляр настроек
settings = Settings()
