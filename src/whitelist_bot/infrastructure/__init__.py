"""Инфраструктурный слой: БД, Discord, мониторинг."""
