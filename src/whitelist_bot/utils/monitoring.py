"""Модуль для мониторинга и отслеживания метрик бота."""

import logging
import os
import platform
import socket
import traceback
from typing import Any, Dict, Optional

import sentry_sdk
from prometheus_client import Counter, Gauge, start_http_server
from sentry_sdk.integrations.logging import LoggingIntegration

# Настройка логгера
logger = logging.getLogger(__name__)

_sentry_enabled = False

# Prometheus метрики
POSTS_EVALUATED = Counter(
    'whitelist_posts_evaluated_total',
    'Posts evaluated by the moderation gate',
    ['decision']
)
NOTICES_SENT = Counter(
    'whitelist_notices_sent_total',
    'Daily notices sent to groups',
    ['kind']
)
BLOCKED_RECORDS = Counter(
    'whitelist_blocked_records_total',
    'Blocked message records processed by the recorder',
    ['result']
)
DELETIONS = Counter(
    'whitelist_deletions_total',
    'Message deletion outcomes',
    ['outcome']
)
APPLICATION_TRANSITIONS = Counter(
    'whitelist_application_transitions_total',
    'Channel application state transitions',
    ['transition']
)
RECORDER_BUFFER_SIZE = Gauge(
    'whitelist_recorder_buffer_size',
    'Blocked message records waiting for flush'
)
DELETION_QUEUE_SIZE = Gauge(
    'whitelist_deletion_queue_size',
    'Messages waiting for deletion'
)
GUILDS_COUNT = Gauge(
    'whitelist_guilds_count',
    'Number of guilds the bot is connected to'
)
ERRORS_COUNT = Counter(
    'whitelist_errors_total',
    'Total errors encountered',
    ['type', 'module']
)


def init_sentry(dsn: Optional[str], environment: str = 'production') -> bool:
    """Инициализация Sentry.

    Args:
        dsn: DSN проекта, без него Sentry отключен
        environment: Окружение (production, staging, ...)

    Returns:
        bool: Включен ли Sentry
    """
    global _sentry_enabled

    if not dsn:
        logger.info("Sentry отключен (DSN не настроен)")
        _sentry_enabled = False
        return False

    try:
        # Отправка в Sentry только ошибок уровня ERROR и выше
        logging_integration = LoggingIntegration(
            level=logging.INFO,
            event_level=logging.ERROR
        )
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            traces_sample_rate=1.0,
            release=os.getenv('VERSION', '1.0.0'),
            integrations=[logging_integration],
            before_send=lambda event, hint: {
                **event,
                'contexts': {
                    **event.get('contexts', {}),
                    'os': {'name': platform.system(), 'version': platform.version()},
                    'runtime': {'name': 'python', 'version': platform.python_version()},
                }
            },
        )
        _sentry_enabled = True
        logger.info("Sentry успешно инициализирован")
    except Exception as e:
        logger.error(f"Ошибка инициализации Sentry: {e}")
        _sentry_enabled = False
    return _sentry_enabled


def start_metrics_server(port: int = 8000) -> None:
    """Запуск сервера метрик Prometheus.

    Args:
        port: Порт для сервера метрик
    """
    try:
        # Проверяем, что порт свободен
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        result = sock.connect_ex(('127.0.0.1', port))
        if result == 0:
            logger.warning(f"Порт {port} уже используется, пробуем порт {port+1}")
            port += 1
        sock.close()

        start_http_server(port)
        logger.info(f"Метрики Prometheus доступны на порту {port}")
    except Exception as e:
        logger.error(f"Ошибка запуска сервера метрик: {e}")


def track_decision(decision: str) -> None:
    POSTS_EVALUATED.labels(decision=decision).inc()


def track_notice(kind: str) -> None:
    NOTICES_SENT.labels(kind=kind).inc()


def track_blocked_records(result: str, count: int = 1) -> None:
    """Учет записей журнала.

    Args:
        result: batch, single или dropped
        count: Количество записей
    """
    if count > 0:
        BLOCKED_RECORDS.labels(result=result).inc(count)


def track_deletion(outcome: str) -> None:
    DELETIONS.labels(outcome=outcome).inc()


def track_transition(transition: str) -> None:
    APPLICATION_TRANSITIONS.labels(transition=transition).inc()


def update_recorder_buffer(size: int) -> None:
    RECORDER_BUFFER_SIZE.set(size)


def update_deletion_queue(size: int) -> None:
    DELETION_QUEUE_SIZE.set(size)


def update_guilds_count(count: int) -> None:
    """Обновление количества серверов.

    Args:
        count: Количество серверов
    """
    GUILDS_COUNT.set(count)


def capture_error(
    error: BaseException,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Захват и логирование ошибок.

    Args:
        error: Объект ошибки
        context: Дополнительный контекст
    """
    try:
        # Обновление метрики ошибок
        error_type = type(error).__name__
        error_module = error.__class__.__module__
        ERRORS_COUNT.labels(type=error_type, module=error_module).inc()

        # Получение трассировки
        tb = traceback.format_exception(type(error), error, error.__traceback__)
        tb_str = ''.join(tb)

        # Логирование ошибки
        log_message = f"Ошибка: {error_type}: {str(error)}"
        if context:
            log_message += f"\nКонтекст: {context}"
        logger.error(f"{log_message}\nТрассировка:\n{tb_str}")

        # Отправка в Sentry если настроен
        if _sentry_enabled:
            with sentry_sdk.new_scope() as scope:
                if context:
                    for key, value in context.items():
                        scope.set_extra(key, value)
                sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.error(f"Ошибка при обработке исключения: {e}")
