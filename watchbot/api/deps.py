"""
Общие зависимости API
"""

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from watchbot.background import get_bitcoin_feed
from watchbot.database import get_db
from watchbot.services.errors import (
    DuplicateWatcher,
    LimitExceeded,
    NotWatching,
    WatchServiceError,
)
from watchbot.services.watch_service import WatchService


def get_watch_service(
    db: Session = Depends(get_db),
    feed=Depends(get_bitcoin_feed),
) -> WatchService:
    return WatchService(db, feed)


def to_http_exception(error: WatchServiceError) -> HTTPException:
    """Сообщение ошибки уходит пользователю без изменений"""
    if isinstance(error, NotWatching):
        status_code = 404
    elif isinstance(error, (DuplicateWatcher, LimitExceeded)):
        status_code = 409
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail=str(error))
