"""Сборка и запуск бота."""
