"""
Главное FastAPI приложение сервиса уведомлений
"""

from fastapi import FastAPI

from watchbot import background
from watchbot.api import prices, watches
from watchbot.background import lifespan
from watchbot.config import settings

# Создаем FastAPI приложение
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Уведомления о транзакциях по адресам и движении цены",
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Подключение API роутеров
app.include_router(watches.router, prefix=settings.API_V1_STR)
app.include_router(prices.router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "bitcoin_feed_connected": background.btc_feed.connected,
        "prices_updated_at": background.price_service.updated_at,
        "deliveries": background.dispatcher.stats if background.dispatcher else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("watchbot.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
