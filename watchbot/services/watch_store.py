"""
Хранилище подписок пользователей поверх SQLAlchemy сессии
"""

import logging
from typing import Any, List, Optional, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from watchbot.database import Base

logger = logging.getLogger(__name__)


class WatchStoreError(Exception):
    """Исключение для ошибок хранилища"""

    pass


class DuplicateEntry(WatchStoreError):
    """Нарушение ограничения уникальности"""

    pass


class WatchStore:
    """
    Минимальный CRUD над моделями подписок

    Фильтры передаются именованными аргументами и объединяются через AND.
    Значение-список (list/tuple/set) превращается в предикат IN.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, model: Type[Base], filters: dict):
        query = self.db.query(model)
        for field, value in filters.items():
            column = getattr(model, field)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def create(self, model: Type[Base], **fields: Any) -> Base:
        """
        Создание записи

        Raises:
            DuplicateEntry: если запись нарушает ограничение уникальности
        """
        entity = model(**fields)
        self.db.add(entity)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Дубликат {model.__name__}: {fields}")
            raise DuplicateEntry(str(e.orig)) from e
        self.db.refresh(entity)
        return entity

    def find_one(self, model: Type[Base], **filters: Any) -> Optional[Base]:
        return self._query(model, filters).order_by(model.id).first()

    def find_all(self, model: Type[Base], **filters: Any) -> List[Base]:
        """Все записи по фильтру в порядке вставки"""
        return self._query(model, filters).order_by(model.id).all()

    def find_and_count(self, model: Type[Base], **filters: Any) -> Tuple[List[Base], int]:
        rows = self.find_all(model, **filters)
        return rows, len(rows)

    def count(self, model: Type[Base], **filters: Any) -> int:
        return self._query(model, filters).count()

    def destroy(self, model: Type[Base], commit: bool = True, **filters: Any) -> int:
        """
        Удаление записей по фильтру

        Args:
            model: Модель
            commit: Фиксировать ли транзакцию сразу
            **filters: Условия отбора

        Returns:
            Количество удаленных записей
        """
        if not filters:
            raise WatchStoreError("Удаление без фильтра запрещено")
        deleted = self._query(model, filters).delete(synchronize_session=False)
        if commit:
            self.db.commit()
        return deleted
