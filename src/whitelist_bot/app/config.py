"""Конфигурация бота из переменных окружения."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Некорректное значение {name}={raw!r}, используется {default}")
        return default


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Некорректное значение {name}={raw!r}, используется {default}")
        return default


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    logger.warning(f"Некорректное значение {name}={raw!r}, используется {default}")
    return default


def _get_ids(env: Mapping[str, str], name: str) -> FrozenSet[int]:
    result = set()
    for part in (env.get(name) or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            result.add(int(part))
        except ValueError:
            logger.warning(f"Пропущен некорректный ID в {name}: {part!r}")
    return frozenset(result)


@dataclass(frozen=True)
class BotConfig:
    """Настройки читаются один раз при запуске."""

    token: str = ""
    db_path: str = os.path.join("data", "whitelist.db")
    db_pool_size: int = 5
    redis_url: Optional[str] = None
    admin_users: FrozenSet[int] = field(default_factory=frozenset)
    require_ownership_verification: bool = True
    admin_only_whitelist: bool = True
    flush_interval: float = 2.0
    delete_workers: int = 4
    delete_queue_size: int = 1000
    use_metrics: bool = False
    metrics_port: int = 8000

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "BotConfig":
        env = os.environ if env is None else env
        return cls(
            token=env.get("DISCORD_TOKEN", ""),
            db_path=env.get("DB_PATH") or os.path.join("data", "whitelist.db"),
            db_pool_size=max(1, _get_int(env, "DB_POOL_SIZE", 5)),
            redis_url=env.get("REDIS_URL") or None,
            admin_users=_get_ids(env, "ADMIN_USERS"),
            require_ownership_verification=_get_bool(env, "REQUIRE_OWNERSHIP_VERIFICATION", True),
            admin_only_whitelist=_get_bool(env, "ADMIN_ONLY_WHITELIST", True),
            flush_interval=max(0.1, _get_float(env, "FLUSH_INTERVAL_SECONDS", 2.0)),
            delete_workers=max(1, _get_int(env, "DELETE_WORKERS", 4)),
            delete_queue_size=max(1, _get_int(env, "DELETE_QUEUE_SIZE", 1000)),
            use_metrics=_get_bool(env, "USE_METRICS", False),
            metrics_port=_get_int(env, "METRICS_PORT", 8000),
        )
