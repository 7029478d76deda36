"""Types and constants for structured logging."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Level(str, Enum):
    """Log level определяет уровень важности лога."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def rank(self) -> int:
        """Numeric severity used for level filtering."""
        return _LEVEL_RANK[self]

    @classmethod
    def parse(cls, value: str | None, default: "Level | None" = None) -> "Level":
        """Parse level name from settings (case-insensitive, 'warning' accepted)."""
        if not value:
            return default or cls.DEBUG
        normalized = value.strip().lower()
        if normalized == "warning":
            normalized = "warn"
        try:
            return cls(normalized)
        except ValueError:
            return default or cls.DEBUG


_LEVEL_RANK = {
    Level.TRACE: 0,
    Level.DEBUG: 1,
    Level.INFO: 2,
    Level.WARN: 3,
    Level.ERROR: 4,
    Level.FATAL: 5,
}


class Category(str, Enum):
    """Category определяет категорию события для группировки логов."""

    DATABASE = "database"  # PostgreSQL, configuration table
    CONFIG = "config"  # Configuration initialization and dumps
    WOOCOMMERCE = "woocommerce"  # WooCommerce service operations
    EXTERNAL_API = "external_api"  # Remote REST calls
    CLI = "cli"  # Command line entry point


@dataclass
class LogEntry:
    """LogEntry представляет одну запись лога для вставки в PostgreSQL."""

    timestamp: datetime
    service_name: str
    instance_id: str
    environment: str
    level: Level
    message: str
    ingestion_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    category: Category | None = None
    request_id: str | None = None
    function_name: str | None = None
    file_path: str | None = None
    line_number: int | None = None
    error_message: str | None = None
    stack_trace: str | None = None
    context: dict[str, Any] | None = None
    duration_ms: int | None = None


@dataclass
class Field:
    """Field для структурированных данных в логах."""

    key: str
    value: Any


def category(cat: Category) -> Field:
    """Создаёт поле для категории лога."""
    return Field(key="_category", value=cat)


def param(key: str, value: Any) -> Field:
    """Универсальная функция для добавления параметра."""
    return Field(key=key, value=value)


def duration_ms(value: int) -> Field:
    """Создаёт поле для duration в миллисекундах."""
    return Field(key="duration_ms", value=value)


def error(err: Exception) -> Field:
    """Создаёт поле для ошибки."""
    return Field(key="error", value=str(err))
