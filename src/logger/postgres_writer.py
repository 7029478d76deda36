"""PostgreSQL writer для логов с батчингом."""

import asyncio
import contextlib
import json
import sys
from typing import Any

import psycopg2
import psycopg2.extras
from psycopg2.extensions import connection as Connection

from src.logger.types import LogEntry

INSERT_LOGS_SQL = """
    INSERT INTO logs (
        timestamp, service_name, instance_id, environment,
        level, category, request_id,
        function_name, file_path, line_number,
        message, error_message, stack_trace, context,
        duration_ms, ingestion_time
    ) VALUES %s
"""


def _entry_row(entry: LogEntry) -> tuple[Any, ...]:
    return (
        entry.timestamp,
        entry.service_name,
        entry.instance_id,
        entry.environment,
        entry.level.value,
        entry.category.value if entry.category else None,
        entry.request_id,
        entry.function_name,
        entry.file_path,
        entry.line_number,
        entry.message,
        entry.error_message,
        entry.stack_trace,
        json.dumps(entry.context, default=str) if entry.context is not None else None,
        entry.duration_ms,
        entry.ingestion_time,
    )


class PostgresWriter:
    """PostgresWriter записывает логи в таблицу logs с батчингом."""

    def __init__(
        self,
        dsn: str,
        batch_size: int = 100,
        flush_interval: float = 5.0,
    ) -> None:
        """
        Initialize PostgresWriter.

        Args:
            dsn: PostgreSQL connection string
            batch_size: Размер батча для flush
            flush_interval: Интервал автоматического flush в секундах
        """
        self.dsn = dsn
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.buffer: list[LogEntry] = []
        self._lock = asyncio.Lock()
        self._conn: Connection | None = None
        self._flush_task: asyncio.Task[None] | None = None
        self._closed = False

    async def connect(self) -> None:
        """Подключается к PostgreSQL и запускает фоновый flush."""
        try:
            self._conn = psycopg2.connect(self.dsn)
            self._conn.set_session(autocommit=False)
            self._flush_task = asyncio.create_task(self._background_flush())
        except Exception as e:
            print(
                f"[LOGGER ERROR] Failed to connect to PostgreSQL: {e}",
                file=sys.stderr,
            )
            raise

    async def write(self, entry: LogEntry) -> None:
        """Добавляет запись в буфер, сбрасывает при достижении batch_size."""
        if self._closed:
            return

        async with self._lock:
            self.buffer.append(entry)
            if len(self.buffer) >= self.batch_size:
                self._flush_buffer()

    def write_nowait(self, entry: LogEntry) -> None:
        """Добавляет запись в буфер вне event loop (сбросится при flush/close)."""
        if not self._closed:
            self.buffer.append(entry)

    async def flush(self) -> None:
        """Принудительно записывает буфер в БД."""
        async with self._lock:
            self._flush_buffer()

    def _flush_buffer(self) -> None:
        if not self.buffer or not self._conn:
            return

        try:
            with self._conn.cursor() as cursor:
                psycopg2.extras.execute_values(
                    cursor,
                    INSERT_LOGS_SQL,
                    [_entry_row(entry) for entry in self.buffer],
                    page_size=self.batch_size,
                )
            self._conn.commit()
            self.buffer.clear()

        except Exception as e:
            print(
                f"[LOGGER ERROR] Failed to insert logs into PostgreSQL: {e}",
                file=sys.stderr,
            )
            with contextlib.suppress(psycopg2.Error):
                self._conn.rollback()
            self._fallback_to_stderr()

    def _fallback_to_stderr(self) -> None:
        """Записывает логи в stderr если PostgreSQL недоступен."""
        for entry in self.buffer:
            data: dict[str, Any] = {
                "timestamp": entry.timestamp.isoformat(),
                "level": entry.level.value,
                "category": entry.category.value if entry.category else None,
                "message": entry.message,
                "service_name": entry.service_name,
                "environment": entry.environment,
            }
            if entry.error_message:
                data["error"] = entry.error_message
            if entry.context:
                data["context"] = entry.context
            print(json.dumps(data, default=str), file=sys.stderr)
        self.buffer.clear()

    async def _background_flush(self) -> None:
        while not self._closed:
            try:
                await asyncio.sleep(self.flush_interval)
                await self.flush()
            except asyncio.CancelledError:
                break

    async def close(self) -> None:
        """Останавливает фоновый flush, сбрасывает остаток и закрывает соединение."""
        self._closed = True

        if self._flush_task:
            self._flush_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._flush_task

        await self.flush()

        if self._conn:
            self._conn.close()
            self._conn = None
