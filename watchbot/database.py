"""
Настройка базы данных SQLAlchemy
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

from watchbot.config import settings

logger = logging.getLogger(__name__)

# Создаем движок базы данных
engine = create_engine(
    settings.DATABASE_URL,
    connect_args=(
        {"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {}
    ),
    echo=settings.DEBUG,
)

# Создаем фабрику сессий
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Базовый класс для моделей
Base = declarative_base()


def init_db() -> None:
    """Создание таблиц, если их еще нет"""
    # Модели должны быть зарегистрированы в Base.metadata до create_all
    from watchbot import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("База данных инициализирована")


def close_db() -> None:
    """Закрытие пула соединений"""
    engine.dispose()
    logger.info("Соединения с базой данных закрыты")


def get_db():
    """
    Генератор для получения сессии базы данных
    Используется как dependency в FastAPI
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
