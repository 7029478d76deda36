"""Structured logger for the WooCommerce integration service."""

import asyncio
import inspect
import os
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.logger.postgres_writer import PostgresWriter
from src.logger.types import Category, Field, Level, LogEntry


class Logger:
    """Logger для структурированного логирования (stderr или PostgreSQL)."""

    def __init__(
        self,
        service_name: str,
        environment: str,
        writer: PostgresWriter | None = None,
        min_level: Level = Level.DEBUG,
    ) -> None:
        """
        Initialize Logger.

        Args:
            service_name: Имя сервиса
            environment: Окружение (dev, stage, prod)
            writer: PostgresWriter для записи логов (None - stderr)
            min_level: Записи ниже этого уровня отбрасываются
        """
        self.service_name = service_name
        self.environment = environment
        self.writer = writer
        self.min_level = min_level
        self.instance_id = self._get_instance_id()

        self._fields: dict[str, Any] = {}
        self._category: Category | None = None
        self._request_id: str | None = None

    def trace(self, msg: str, *fields: Field) -> None:
        """Log trace level message."""
        self._log(Level.TRACE, msg, None, *fields)

    def debug(self, msg: str, *fields: Field) -> None:
        """Log debug level message."""
        self._log(Level.DEBUG, msg, None, *fields)

    def info(self, msg: str, *fields: Field) -> None:
        """Log info level message."""
        self._log(Level.INFO, msg, None, *fields)

    def warn(self, msg: str, *fields: Field) -> None:
        """Log warn level message."""
        self._log(Level.WARN, msg, None, *fields)

    def error(self, msg: str, err: Exception | None = None, *fields: Field) -> None:
        """Log error level message."""
        self._log(Level.ERROR, msg, err, *fields)

    def fatal(self, msg: str, err: Exception | None = None, *fields: Field) -> None:
        """Log fatal level message and exit."""
        self._log(Level.FATAL, msg, err, *fields)
        raise SystemExit(1)

    def _log(
        self,
        level: Level,
        msg: str,
        err: Exception | None,
        *fields: Field,
    ) -> None:
        if level.rank < self.min_level.rank:
            return

        frame = inspect.currentframe()
        caller_frame = frame.f_back.f_back if frame and frame.f_back else None

        function_name = None
        file_path = None
        line_number = None

        if caller_frame:
            function_name = caller_frame.f_code.co_name
            file_path = self._clean_file_path(caller_frame.f_code.co_filename)
            line_number = caller_frame.f_lineno

        context: dict[str, Any] = dict(self._fields)
        category = self._category

        for field in fields:
            if field.key == "_category":
                if isinstance(field.value, Category):
                    category = field.value
                continue
            context[field.key] = field.value

        duration_ms = context.pop("duration_ms", None)
        if duration_ms is not None:
            duration_ms = int(duration_ms)

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            service_name=self.service_name,
            instance_id=self.instance_id,
            environment=self.environment,
            level=level,
            category=category,
            request_id=self._request_id,
            function_name=function_name,
            file_path=file_path,
            line_number=line_number,
            message=msg,
            context=context if context else None,
            duration_ms=duration_ms,
        )

        if err:
            entry.error_message = str(err)
            if level in (Level.ERROR, Level.FATAL):
                entry.stack_trace = "".join(
                    traceback.format_exception(type(err), err, err.__traceback__)
                )

        if self.writer:
            try:
                loop = asyncio.get_running_loop()
                loop.create_task(self.writer.write(entry))
            except RuntimeError:
                # Нет running loop - пишем синхронно в буфер
                self.writer.write_nowait(entry)
        else:
            self._print(entry)

    @staticmethod
    def _print(entry: LogEntry) -> None:
        """Fallback без writer: пишем в stderr, stdout остаётся для вывода команд."""
        category = entry.category.value if entry.category else "-"
        line = f"[{entry.level.value}] {category}: {entry.message}"
        if entry.context:
            line += " " + " ".join(f"{k}={v}" for k, v in entry.context.items())
        if entry.error_message:
            line += f" error={entry.error_message}"
        print(line, file=sys.stderr)

    def with_category(self, category: Category) -> "Logger":
        """Возвращает новый logger с указанной категорией."""
        new_logger = self._copy()
        new_logger._category = category
        return new_logger

    def with_request_id(self, request_id: str | None = None) -> "Logger":
        """Возвращает новый logger с request ID (генерирует, если не передан)."""
        new_logger = self._copy()
        new_logger._request_id = request_id or str(uuid.uuid4())
        return new_logger

    def with_fields(self, *fields: Field) -> "Logger":
        """Возвращает новый logger с дополнительными полями."""
        new_logger = self._copy()
        for field in fields:
            new_logger._fields[field.key] = field.value
        return new_logger

    def _copy(self) -> "Logger":
        new_logger = Logger(
            self.service_name, self.environment, self.writer, self.min_level
        )
        new_logger.instance_id = self.instance_id
        new_logger._fields = dict(self._fields)
        new_logger._category = self._category
        new_logger._request_id = self._request_id
        return new_logger

    @staticmethod
    def _get_instance_id() -> str:
        """Получает уникальный ID инстанса из env или генерирует."""
        if hostname := os.getenv("HOSTNAME"):
            return hostname
        if container_id := os.getenv("CONTAINER_ID"):
            return container_id
        return str(uuid.uuid4())

    @staticmethod
    def _clean_file_path(file_path: str) -> str:
        """Обрезает путь до src/... или до имени файла."""
        path = Path(file_path)
        parts = path.parts
        if "src" in parts:
            idx = parts.index("src")
            return str(Path(*parts[idx:]))
        return path.name


_global_logger: Logger | None = None


def get_logger() -> Logger:
    """Возвращает глобальный logger instance."""
    if _global_logger is None:
        raise RuntimeError("Logger not initialized. Call init_logger() first.")
    return _global_logger


def init_logger(
    service_name: str,
    environment: str,
    writer: PostgresWriter | None = None,
    level: str | Level | None = None,
) -> Logger:
    """
    Инициализирует глобальный logger.

    Args:
        service_name: Имя сервиса
        environment: Окружение (dev, stage, prod)
        writer: PostgresWriter для записи логов
        level: Минимальный уровень (из LOG_LEVEL)

    Returns:
        Logger instance
    """
    global _global_logger
    min_level = level if isinstance(level, Level) else Level.parse(level)
    _global_logger = Logger(service_name, environment, writer, min_level)
    return _global_logger
