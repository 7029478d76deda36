"""Configuration repository for PostgreSQL."""

from typing import Any

from psycopg2.extras import RealDictCursor

from src.database.postgres import PostgresClient
from src.domain.config import ConfigEntry, ConfigType, encode_value
from src.logger.logger import get_logger
from src.logger.types import Category, param

TABLE_NAME = "configuration"

_SELECT_COLUMNS = "key, value, type, category, description, updated_at, updated_by"


class ConfigRepository:
    """Repository for category-scoped key/value configuration in PostgreSQL."""

    def __init__(self, postgres_client: PostgresClient) -> None:
        """
        Initialize ConfigRepository.

        Args:
            postgres_client: PostgreSQL client instance
        """
        self.postgres = postgres_client
        self.logger = get_logger().with_category(Category.DATABASE)

    def ensure_table_exists(self) -> bool:
        """
        Create the configuration table if it does not exist.

        Returns:
            True if table exists or was created
        """
        ddl = f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                type TEXT NOT NULL DEFAULT 'text',
                category TEXT NOT NULL,
                description TEXT,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_by TEXT NOT NULL DEFAULT 'system'
            );
            CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_category
                ON {TABLE_NAME} (category);
        """
        with self.postgres.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(ddl)
                conn.commit()
                return True
            except Exception as e:
                conn.rollback()
                self.logger.error(f"Failed to ensure {TABLE_NAME} table exists", e)
                return False

    def get(self, key: str) -> ConfigEntry | None:
        """
        Get configuration entry by key.

        Returns:
            ConfigEntry or None if not found
        """
        with self.postgres.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} WHERE key = %s",
                    (key,),
                )
                row = cur.fetchone()

        return self._row_to_entry(row) if row is not None else None

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get decoded configuration value by key, or default."""
        entry = self.get(key)
        if entry is None:
            return default
        return self._decode(entry)

    def get_by_category(self, category: str) -> dict[str, ConfigEntry]:
        """
        Get all entries of a category.

        Args:
            category: Configuration category (general, notifications, woocommerce, ...)

        Returns:
            Mapping key -> ConfigEntry, empty if the category has no rows
        """
        with self.postgres.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"""
                    SELECT {_SELECT_COLUMNS}
                    FROM {TABLE_NAME}
                    WHERE category = %s
                    ORDER BY key
                    """,
                    (category,),
                )
                rows = cur.fetchall()

        return {row["key"]: self._row_to_entry(row) for row in rows}

    def get_values_by_category(self, category: str) -> dict[str, Any]:
        """Get decoded values of a category as key -> value."""
        return {
            key: self._decode(entry)
            for key, entry in self.get_by_category(category).items()
        }

    def get_all(self) -> list[ConfigEntry]:
        """Get all configuration entries ordered by category and key."""
        with self.postgres.connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM {TABLE_NAME} ORDER BY category, key"
                )
                rows = cur.fetchall()

        return [self._row_to_entry(row) for row in rows]

    def get_grouped(self) -> dict[str, dict[str, Any]]:
        """Get all decoded values grouped by category."""
        grouped: dict[str, dict[str, Any]] = {}
        for entry in self.get_all():
            grouped.setdefault(entry.category, {})[entry.key] = self._decode(entry)
        return grouped

    def upsert(
        self,
        key: str,
        value: Any,
        type_: ConfigType | None = None,
        category: str = "general",
        description: str | None = None,
        updated_by: str = "system",
    ) -> None:
        """
        Insert or update a configuration entry.

        On key conflict value, type, category and updated_by are overwritten
        and updated_at is refreshed; description is only set on insert.

        Args:
            key: Configuration key (globally unique)
            value: Any value; stringified with its type tag
            type_: Explicit type tag, inferred from value when None
            category: Configuration category
            description: Human readable description for new rows
            updated_by: Who updated (system, admin, cli)
        """
        stored, tag = encode_value(value, type_)

        with self.postgres.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        INSERT INTO {TABLE_NAME}
                            (key, value, type, category, description, updated_by, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, NOW())
                        ON CONFLICT (key) DO UPDATE SET
                            value = EXCLUDED.value,
                            type = EXCLUDED.type,
                            category = EXCLUDED.category,
                            updated_by = EXCLUDED.updated_by,
                            updated_at = NOW()
                        """,
                        (key, stored, tag.value, category, description, updated_by),
                    )
                conn.commit()

                self.logger.debug(
                    "Config upserted",
                    param("key", key),
                    param("type", tag.value),
                    param("category", category),
                    param("updated_by", updated_by),
                )
            except Exception as e:
                conn.rollback()
                self.logger.error(
                    "Failed to upsert config",
                    e,
                    param("key", key),
                    param("category", category),
                )
                raise

    def _decode(self, entry: ConfigEntry) -> Any:
        try:
            return entry.typed_value
        except ValueError:
            self.logger.warn(
                f"Invalid {entry.type.value} value for config key {entry.key}",
                param("key", entry.key),
                param("category", entry.category),
            )
            return entry.value

    def _row_to_entry(self, row: dict[str, Any]) -> ConfigEntry:
        try:
            type_ = ConfigType(row.get("type") or ConfigType.TEXT.value)
        except ValueError:
            self.logger.warn(
                f"Unknown type tag for config key {row['key']}, reading as text",
                param("key", row["key"]),
                param("type", row.get("type")),
            )
            type_ = ConfigType.TEXT

        return ConfigEntry(
            key=row["key"],
            value=row["value"],
            type=type_,
            category=row["category"],
            description=row.get("description"),
            updated_at=row.get("updated_at"),
            updated_by=row.get("updated_by") or "system",
        )
