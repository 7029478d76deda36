"""Tests for WooCommerceService."""

from unittest.mock import MagicMock

import pytest
import requests

from src.domain.config import ConfigType
from src.domain.errors import (
    WooCommerceClientError,
    WooCommerceConfigError,
    WooCommerceProductNotFoundError,
)
from src.domain.woocommerce import WooCommerceConfig
from src.services.woocommerce_adapter import WooCommerceAdapter
from src.services.woocommerce_service import WooCommerceService

from tests.conftest import make_response

SHOP = {
    "url": "https://shop.test",
    "consumer_key": "ck_1",
    "consumer_secret": "cs_1",
    "version": "wc/v3",
}


@pytest.fixture
def service(repository, woo_settings, adapter_factory):
    return WooCommerceService(repository, woo_settings, adapter_factory=adapter_factory)


class TestLoadConfig:
    """Tests for load_config."""

    @pytest.mark.asyncio
    async def test_empty_category_returns_defaults(self, service):
        config = await service.load_config()
        assert config.to_dict() == {
            "url": "",
            "consumer_key": "",
            "consumer_secret": "",
            "version": "wc/v3",
        }

    @pytest.mark.asyncio
    async def test_unknown_and_foreign_keys_ignored(self, service, repository):
        repository.upsert("url", "https://shop.test", category="woocommerce")
        repository.upsert("webhook_secret", "x", category="woocommerce")
        repository.upsert("consumer_key", "other", category="general")

        config = await service.load_config()
        assert config.url == "https://shop.test"
        assert config.consumer_key == ""
        assert not hasattr(config, "webhook_secret")


class TestSaveConfig:
    """Tests for save_config."""

    @pytest.mark.asyncio
    async def test_round_trip_scenario(self, service, repository):
        """Saving four fields creates four text rows and loads back identical."""
        await service.save_config(WooCommerceConfig(**SHOP))

        rows = repository.get_by_category("woocommerce")
        assert set(rows) == {"url", "consumer_key", "consumer_secret", "version"}
        assert all(row.type is ConfigType.TEXT for row in rows.values())
        assert rows["url"].description == "WooCommerce configuration: url"

        loaded = await service.load_config()
        assert loaded == WooCommerceConfig(**SHOP)

    @pytest.mark.asyncio
    async def test_skips_none_fields(self, service, repository):
        await service.save_config(WooCommerceConfig(**SHOP))
        repository.upserts.clear()

        await service.save_config(
            WooCommerceConfig(url="https://new.test", consumer_key=None, consumer_secret=None, version=None)
        )

        assert repository.upserts == ["url"]
        loaded = await service.load_config()
        assert loaded.url == "https://new.test"
        assert loaded.consumer_key == "ck_1"
        assert loaded.consumer_secret == "cs_1"

    @pytest.mark.asyncio
    async def test_mapping_input(self, service, repository):
        await service.save_config({"url": "https://shop.test", "extra": "ignored", "version": None})
        assert repository.upserts == ["url"]

    @pytest.mark.asyncio
    async def test_moves_key_into_category(self, service, repository):
        """An existing row with the same key is re-categorized."""
        repository.upsert("url", "https://kacum-desguaces.com", category="general")
        await service.save_config({"url": "https://shop.test"})
        assert repository.get("url").category == "woocommerce"


class TestBuildClient:
    """Tests for build_client."""

    @pytest.mark.asyncio
    async def test_maps_config_to_options(self, service, repository, api_factory):
        await service.save_config(WooCommerceConfig(**SHOP))
        adapter = await service.build_client()

        assert isinstance(adapter, WooCommerceAdapter)
        assert adapter.options.consumer_key == "ck_1"
        assert adapter.options.consumer_secret == "cs_1"
        assert adapter.options.timeout == 2
        assert adapter.poll_interval == 0.1
        assert adapter.max_attempts == 10

    @pytest.mark.asyncio
    async def test_independent_instances(self, service, repository):
        await service.save_config(WooCommerceConfig(**SHOP))
        first = await service.build_client()
        second = await service.build_client()
        assert first is not second
        assert repository.category_reads == 2

    @pytest.mark.asyncio
    async def test_wraps_store_errors(self, service, repository):
        repository.get_by_category = MagicMock(side_effect=RuntimeError("db down"))
        with pytest.raises(WooCommerceClientError) as exc_info:
            await service.build_client()
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestTestConnection:
    """Tests for the connectivity probe."""

    @pytest.mark.asyncio
    async def test_true_with_ready_client(self, service, repository, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        assert await service.test_connection() is True
        remote_api.get.assert_called_once_with("products", params={"per_page": 1})

    @pytest.mark.asyncio
    async def test_supplied_config_bypasses_store(self, service, repository, api_factory):
        assert await service.test_connection(WooCommerceConfig(**SHOP)) is True
        assert repository.category_reads == 0
        assert repository.upserts == []
        assert api_factory.call_args.kwargs["url"] == "https://shop.test"

    @pytest.mark.asyncio
    async def test_supplied_mapping(self, service):
        assert await service.test_connection(dict(SHOP)) is True

    @pytest.mark.asyncio
    async def test_false_on_network_error(self, service, remote_api):
        remote_api.get.side_effect = requests.ConnectionError("unreachable")
        assert await service.test_connection(WooCommerceConfig(**SHOP)) is False

    @pytest.mark.asyncio
    async def test_false_on_auth_error(self, service, remote_api):
        response = make_response(status_code=401)
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
        remote_api.get.return_value = response
        assert await service.test_connection(WooCommerceConfig(**SHOP)) is False

    @pytest.mark.asyncio
    async def test_false_on_missing_credentials(self, service, remote_api):
        """Nothing stored: initialization fails and the probe answers False."""
        assert await service.test_connection() is False
        remote_api.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_false_on_store_error(self, service, repository):
        repository.get_by_category = MagicMock(side_effect=RuntimeError("db down"))
        assert await service.test_connection() is False

    @pytest.mark.asyncio
    async def test_false_on_unreachable_url(self, repository, woo_settings):
        """Real woocommerce.API against a closed local port."""
        service = WooCommerceService(repository, woo_settings)
        config = WooCommerceConfig(
            url="http://127.0.0.1:9", consumer_key="ck_1", consumer_secret="cs_1"
        )
        assert await service.test_connection(config) is False


class TestProducts:
    """Tests for product listing and lookup."""

    @pytest.mark.asyncio
    async def test_list_products_pagination(self, service, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        remote_api.get.return_value = make_response(
            [{"id": 10}, {"id": 11}],
            headers={"X-WP-Total": "120", "X-WP-TotalPages": "3"},
        )

        page = await service.list_products(page=2, per_page=50, search="faro")

        remote_api.get.assert_called_once_with(
            "products", params={"page": 2, "per_page": 50, "search": "faro"}
        )
        assert page.total == 120
        assert page.total_pages == 3
        assert page.to_dict()["pagination"] == {
            "total": 120,
            "total_pages": 3,
            "page": 2,
            "per_page": 50,
        }
        assert [p["id"] for p in page.products] == [10, 11]

    @pytest.mark.asyncio
    async def test_list_products_missing_headers(self, service, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        page = await service.list_products()
        assert page.total == 0
        assert page.total_pages == 1
        assert "search" not in remote_api.get.call_args.kwargs["params"]

    @pytest.mark.asyncio
    async def test_get_product(self, service, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        remote_api.get.return_value = make_response({"id": 7, "sku": "MOT-7"})
        assert await service.get_product(7) == {"id": 7, "sku": "MOT-7"}
        remote_api.get.assert_called_once_with("products/7")

    @pytest.mark.asyncio
    async def test_get_product_not_found(self, service, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        response = make_response(status_code=404)
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
        remote_api.get.return_value = response

        with pytest.raises(WooCommerceProductNotFoundError) as exc_info:
            await service.get_product(99)
        assert exc_info.value.product_id == 99

    @pytest.mark.asyncio
    async def test_get_product_server_error_propagates(self, service, remote_api):
        await service.save_config(WooCommerceConfig(**SHOP))
        response = make_response(status_code=500)
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
        remote_api.get.return_value = response

        with pytest.raises(requests.HTTPError):
            await service.get_product(99)


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid_defaults_version(self):
        config = WooCommerceService.validate_config(
            {"url": "https://shop.test", "consumer_key": "ck", "consumer_secret": "cs"}
        )
        assert config.version == "wc/v3"

    def test_collects_errors(self):
        with pytest.raises(WooCommerceConfigError) as exc_info:
            WooCommerceService.validate_config(
                {"url": "shop.test", "consumer_key": "", "version": "wc/v9"}
            )
        errors = exc_info.value.errors
        assert len(errors) == 4
        assert any("url" in e for e in errors)
        assert any("consumer_secret" in e for e in errors)
        assert any("version" in e for e in errors)

    def test_legacy_version_accepted(self):
        config = WooCommerceService.validate_config({**SHOP, "version": "wc-api/v3"})
        assert config.version == "wc-api/v3"
