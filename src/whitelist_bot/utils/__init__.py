"""Вспомогательные модули."""
