"""Бот модерации постов каналов по белому списку."""

__version__ = "1.0.0"
