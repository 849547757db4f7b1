"""Модуль для работы с базой данных."""

import asyncio
import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite
import redis
from sqlalchemy import create_engine

from whitelist_bot.database.models import Base

logger = logging.getLogger(__name__)

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=10000",
    "PRAGMA temp_store=MEMORY",
)


def is_storage_busy(error: BaseException) -> bool:
    """Ошибка SQLite «database is locked/busy», после которой стоит повторить запрос."""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message


class Database:
    """Класс для работы с базой данных."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        redis_url: Optional[str] = None,
        pool_size: Optional[int] = None,
    ):
        """Инициализация подключения к базе данных."""
        self.db_path = db_path or os.getenv("DB_PATH", os.path.join("data", "whitelist.db"))
        self.redis_url = redis_url if redis_url is not None else os.getenv("REDIS_URL")
        self.redis = None
        self.pool = None
        self.pool_size = pool_size or int(os.getenv("DB_POOL_SIZE", "5"))

    async def setup(self):
        """Настройка базы данных."""
        # Инициализация SQLite
        await self._init_sqlite()

        # Инициализация Redis если доступен
        await self._init_redis()

    async def _init_sqlite(self):
        """Инициализация SQLite базы данных."""
        try:
            # Схема создается идемпотентно при каждом запуске
            await asyncio.to_thread(init_db, self.db_path)

            # Создаем пул соединений
            self.pool = []
            for _ in range(self.pool_size):
                self.pool.append(await self._connect())

            logger.info(f"База данных SQLite {self.db_path} успешно инициализирована")

        except Exception as e:
            logger.error(f"Ошибка при инициализации SQLite: {str(e)}")
            raise

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        return conn

    async def _init_redis(self):
        """Инициализация Redis."""
        if self.redis_url:
            try:
                self.redis = redis.from_url(self.redis_url, decode_responses=True)
                self.redis.ping()
                logger.info("Подключение к Redis успешно установлено")
            except redis.ConnectionError:
                logger.warning("Redis недоступен. Состояния пользователей хранятся в SQLite.")
                self.redis = None
            except Exception as e:
                logger.error(f"Ошибка при подключении к Redis: {e}")
                self.redis = None
        else:
            logger.info("URL Redis не настроен. Состояния пользователей хранятся в SQLite.")
            self.redis = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Получение соединения из пула."""
        if not self.pool:
            # Если пул не инициализирован или пуст, создаем одно соединение
            conn = await self._connect()
            try:
                yield conn
            finally:
                await conn.close()
            return

        # Получаем соединение из пула
        conn = self.pool.pop()
        try:
            yield conn
        finally:
            # Возвращаем соединение в пул
            if self.pool is not None and len(self.pool) < self.pool_size:
                self.pool.append(conn)
            else:
                await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Транзакция: commit при успехе, rollback при любой ошибке."""
        async with self.get_connection() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    async def execute(self, query: str, params: tuple = ()) -> int:
        """Выполнение SQL запроса. Возвращает число измененных строк."""
        async with self.get_connection() as conn:
            try:
                cursor = await conn.execute(query, params)
                await conn.commit()
                return cursor.rowcount
            except Exception as e:
                await conn.rollback()
                logger.error(f"Ошибка выполнения SQL запроса: {e}")
                logger.error(f"Запрос: {query}, Параметры: {params}")
                raise

    async def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Получение одной записи."""
        async with self.get_connection() as conn:
            try:
                async with conn.execute(query, params) as cursor:
                    row = await cursor.fetchone()
                return dict(row) if row else None
            except Exception as e:
                logger.error(f"Ошибка при выполнении fetch_one: {e}")
                logger.error(f"Запрос: {query}, Параметры: {params}")
                raise

    async def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Получение всех записей."""
        async with self.get_connection() as conn:
            try:
                async with conn.execute(query, params) as cursor:
                    rows = await cursor.fetchall()
                return [dict(row) for row in rows]
            except Exception as e:
                logger.error(f"Ошибка при выполнении fetch_all: {e}")
                logger.error(f"Запрос: {query}, Параметры: {params}")
                raise

    async def close(self):
        """Закрытие всех соединений."""
        if self.pool:
            for conn in self.pool:
                try:
                    await conn.close()
                except Exception as e:
                    logger.error(f"Ошибка при закрытии соединения: {e}")
            self.pool = []
        if self.redis is not None:
            self.redis.close()
            self.redis = None


def init_db(db_path: str) -> None:
    """Создание таблиц по моделям SQLAlchemy (идемпотентно)."""
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{db_path}")
        try:
            Base.metadata.create_all(engine)
        finally:
            engine.dispose()
        logger.info("База данных инициализирована")
    except Exception as e:
        logger.error(f"Ошибка при инициализации базы данных: {e}")
        raise
