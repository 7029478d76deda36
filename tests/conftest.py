"""Shared fixtures: logger initialization and an in-memory configuration store."""

from datetime import datetime, timezone
from functools import partial
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.config.settings import WooCommerceSettings
from src.domain.config import ConfigEntry, ConfigType, encode_value
from src.logger.logger import init_logger
from src.services.woocommerce_adapter import WooCommerceAdapter


@pytest.fixture(autouse=True)
def logger():
    """Every component calls get_logger(); initialize it without a writer."""
    return init_logger(service_name="desguace-test", environment="test", level="debug")


class InMemoryConfigRepository:
    """Dict-backed stand-in for ConfigRepository with the same upsert semantics."""

    def __init__(self) -> None:
        self.rows: dict[str, ConfigEntry] = {}
        self.upserts: list[str] = []
        self.category_reads = 0

    def upsert(
        self,
        key: str,
        value: Any,
        type_: ConfigType | None = None,
        category: str = "general",
        description: str | None = None,
        updated_by: str = "system",
    ) -> None:
        stored, tag = encode_value(value, type_)
        existing = self.rows.get(key)
        self.rows[key] = ConfigEntry(
            key=key,
            value=stored,
            type=tag,
            category=category,
            description=existing.description if existing else description,
            updated_at=datetime.now(timezone.utc),
            updated_by=updated_by,
        )
        self.upserts.append(key)

    def get(self, key: str) -> ConfigEntry | None:
        return self.rows.get(key)

    def get_by_category(self, category: str) -> dict[str, ConfigEntry]:
        self.category_reads += 1
        return {k: e for k, e in sorted(self.rows.items()) if e.category == category}

    def get_values_by_category(self, category: str) -> dict[str, Any]:
        return {k: e.typed_value for k, e in self.get_by_category(category).items()}

    def get_all(self) -> list[ConfigEntry]:
        return sorted(self.rows.values(), key=lambda e: (e.category, e.key))


@pytest.fixture
def repository() -> InMemoryConfigRepository:
    return InMemoryConfigRepository()


@pytest.fixture
def woo_settings() -> WooCommerceSettings:
    settings = WooCommerceSettings()
    settings.timeout = 2
    settings.verify_ssl = True
    settings.query_string_auth = False
    settings.init_poll_interval = 0.1
    settings.init_max_attempts = 10
    return settings


def make_response(
    json_data: Any = None, status_code: int = 200, headers: dict[str, str] | None = None
) -> MagicMock:
    """requests.Response look-alike; raise_for_status is a no-op unless configured."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = json_data if json_data is not None else []
    return response


@pytest.fixture
def remote_api() -> MagicMock:
    """Ready woocommerce.API replacement; every verb answers 2xx."""
    api = MagicMock()
    api.get.return_value = make_response([{"id": 1, "name": "Faro delantero"}])
    api.post.return_value = make_response({"id": 2}, status_code=201)
    api.put.return_value = make_response({"id": 2})
    api.delete.return_value = make_response({"id": 2})
    return api


@pytest.fixture
def api_factory(remote_api: MagicMock) -> MagicMock:
    return MagicMock(return_value=remote_api)


@pytest.fixture
def adapter_factory(api_factory: MagicMock):
    """Real adapter class bound to the mocked remote client."""
    return partial(WooCommerceAdapter, api_factory=api_factory)
