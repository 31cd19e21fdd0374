"""
API endpoints для ценовых диапазонов и подписки на цену
"""

from fastapi import APIRouter, Depends, HTTPException

from watchbot.api.deps import get_watch_service, to_http_exception
from watchbot.schemas.watch import (
    PriceSubscription,
    PriceSubscriptionUpdate,
    PriceWatcher,
    PriceWatcherCreate,
    PriceWatcherList,
)
from watchbot.services.errors import WatchServiceError
from watchbot.services.watch_service import WatchService

router = APIRouter(prefix="/chats/{chat_id}", tags=["prices"])


@router.get("/price-watchers", response_model=PriceWatcherList)
async def list_price_watchers(
    chat_id: int,
    service: WatchService = Depends(get_watch_service),
):
    """
    Ценовые диапазоны чата
    """
    watchers, count = service.list_price_watchers(chat_id)
    return PriceWatcherList(chat_id=chat_id, price_watchers=watchers, count=count)


@router.post("/price-watchers", response_model=PriceWatcher, status_code=201)
async def create_price_watcher(
    chat_id: int,
    payload: PriceWatcherCreate,
    service: WatchService = Depends(get_watch_service),
):
    """
    Задать диапазон, при выходе из которого придет уведомление
    """
    try:
        return service.create_price_watcher(
            chat_id, payload.coin, payload.price_low, payload.price_high
        )
    except WatchServiceError as e:
        raise to_http_exception(e)


@router.delete("/price-watchers/{coin}", status_code=204)
async def delete_price_watcher(
    chat_id: int,
    coin: str,
    service: WatchService = Depends(get_watch_service),
):
    try:
        deleted = service.delete_price_watcher(chat_id, coin)
    except WatchServiceError as e:
        raise to_http_exception(e)

    if not deleted:
        raise HTTPException(status_code=404, detail="Price Watcher not found /help")


@router.get("/price-subscription", response_model=PriceSubscription)
async def get_price_subscription(
    chat_id: int,
    service: WatchService = Depends(get_watch_service),
):
    subscription = service.get_price_subscription(chat_id)
    if not subscription:
        raise HTTPException(status_code=404, detail="You are not subscribed /help")
    return subscription


@router.put("/price-subscription", response_model=PriceSubscription)
async def subscribe_price(
    chat_id: int,
    payload: PriceSubscriptionUpdate,
    service: WatchService = Depends(get_watch_service),
):
    """
    Подписаться на рассылку текущей цены (заменяет прежнюю подписку)
    """
    try:
        return service.subscribe_actual_price(chat_id, payload.hours_interval)
    except WatchServiceError as e:
        raise to_http_exception(e)


@router.delete("/price-subscription", status_code=204)
async def unsubscribe_price(
    chat_id: int,
    service: WatchService = Depends(get_watch_service),
):
    if not service.unsubscribe_actual_price(chat_id):
        raise HTTPException(status_code=404, detail="You are not subscribed /help")
