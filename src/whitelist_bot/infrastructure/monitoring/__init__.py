"""Инфраструктурный слой мониторинга."""

from __future__ import annotations

import logging
import os

from whitelist_bot.utils.monitoring import init_sentry, start_metrics_server

logger = logging.getLogger(__name__)


def init_monitoring(use_metrics: bool = False, metrics_port: int = 8000) -> None:
    """Явная инициализация мониторинга приложения."""

    dsn = os.getenv("SENTRY_DSN")
    environment = os.getenv("ENVIRONMENT", "production")
    init_sentry(dsn, environment)
    if use_metrics:
        start_metrics_server(metrics_port)
    logger.info("Мониторинг инициализирован")
