"""Подключение к базе данных и схема."""

from whitelist_bot.database.db import Database, init_db, is_storage_busy

__all__ = ["Database", "init_db", "is_storage_busy"]
