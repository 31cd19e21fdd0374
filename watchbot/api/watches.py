"""
API endpoints для отслеживания адресов
"""

from fastapi import APIRouter, Depends

from watchbot.api.deps import get_watch_service, to_http_exception
from watchbot.schemas.watch import AddressWatch, AddressWatchCreate, AddressWatchList
from watchbot.services.errors import WatchServiceError
from watchbot.services.watch_service import WatchService

router = APIRouter(prefix="/chats/{chat_id}/watches", tags=["watches"])


@router.get("", response_model=AddressWatchList)
async def list_watches(
    chat_id: int,
    service: WatchService = Depends(get_watch_service),
):
    """
    Список отслеживаемых адресов чата
    """
    watches, count = service.list_address_watches(chat_id)
    return AddressWatchList(
        chat_id=chat_id,
        watches=watches,
        count=count,
        limit=service.limits.max_watches,
    )


@router.post("", response_model=AddressWatch, status_code=201)
async def add_watch(
    chat_id: int,
    payload: AddressWatchCreate,
    service: WatchService = Depends(get_watch_service),
):
    """
    Начать отслеживание адреса
    """
    try:
        return await service.add_address_watch(chat_id, payload.address)
    except WatchServiceError as e:
        raise to_http_exception(e)


@router.delete("/{address}", status_code=204)
async def remove_watch(
    chat_id: int,
    address: str,
    service: WatchService = Depends(get_watch_service),
):
    """
    Прекратить отслеживание адреса
    """
    try:
        await service.remove_address_watch(chat_id, address)
    except WatchServiceError as e:
        raise to_http_exception(e)


@router.delete("")
async def remove_all_watches(
    chat_id: int,
    service: WatchService = Depends(get_watch_service),
):
    """
    Удалить все адреса чата
    """
    deleted = await service.remove_all_address_watches(chat_id)
    return {"chat_id": chat_id, "deleted": deleted}
