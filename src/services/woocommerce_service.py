"""WooCommerce service: stored credentials, client construction and shop queries."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import requests

from src.config.settings import WooCommerceSettings
from src.domain.config import WOOCOMMERCE_CATEGORY, ConfigType
from src.domain.errors import (
    WooCommerceClientError,
    WooCommerceConfigError,
    WooCommerceProductNotFoundError,
)
from src.domain.woocommerce import (
    DEFAULT_API_VERSION,
    SUPPORTED_API_VERSIONS,
    ProductPage,
    WooCommerceConfig,
    WooCommerceOptions,
)
from src.logger.logger import get_logger
from src.logger.types import Category, param
from src.repository.config_repository import ConfigRepository
from src.services.woocommerce_adapter import WooCommerceAdapter

DEFAULT_PER_PAGE = 50


class WooCommerceService:
    """
    Entry point used by the rest of the application for WooCommerce.

    Every operation builds its own adapter; nothing is cached between calls.
    """

    def __init__(
        self,
        config_repository: ConfigRepository,
        settings: WooCommerceSettings | None = None,
        adapter_factory: type[WooCommerceAdapter] = WooCommerceAdapter,
    ) -> None:
        """
        Initialize WooCommerceService.

        Args:
            config_repository: Store holding the 'woocommerce' category
            settings: Transport settings (timeouts, SSL, init polling)
            adapter_factory: Adapter class, replaceable in tests
        """
        self.config_repository = config_repository
        self.settings = settings or WooCommerceSettings()
        self.adapter_factory = adapter_factory
        self.logger = get_logger().with_category(Category.WOOCOMMERCE)

    async def load_config(self) -> WooCommerceConfig:
        """
        Load credentials from the configuration store.

        Missing keys keep their defaults, unknown keys are ignored.
        """
        entries = self.config_repository.get_by_category(WOOCOMMERCE_CATEGORY)
        config = WooCommerceConfig.from_mapping(
            {key: entry.value for key, entry in entries.items()}
        )
        self.logger.debug(
            "WooCommerce config loaded",
            param("keys", sorted(entries)),
            param("url", config.url),
        )
        return config

    async def save_config(
        self, config: WooCommerceConfig | Mapping[str, Any], updated_by: str = "system"
    ) -> None:
        """
        Persist credentials, one text row per field.

        Fields set to None are skipped so the stored value stays untouched.
        """
        if isinstance(config, WooCommerceConfig):
            items = config.to_dict()
        else:
            known = WooCommerceConfig.keys()
            items = {key: value for key, value in config.items() if key in known}

        saved = []
        for key, value in items.items():
            if value is None:
                continue
            self.config_repository.upsert(
                key,
                value,
                type_=ConfigType.TEXT,
                category=WOOCOMMERCE_CATEGORY,
                description=f"WooCommerce configuration: {key}",
                updated_by=updated_by,
            )
            saved.append(key)

        self.logger.info(
            "WooCommerce config saved",
            param("keys", saved),
            param("updated_by", updated_by),
        )

    async def build_client(self) -> WooCommerceAdapter:
        """
        Build an adapter from the stored configuration.

        Raises:
            WooCommerceClientError: loading config or constructing the adapter failed
        """
        try:
            config = await self.load_config()
            return self._new_adapter(config)
        except Exception as e:
            self.logger.error("Error creating WooCommerce API instance", e)
            raise WooCommerceClientError("Could not create WooCommerce API instance") from e

    async def test_connection(
        self, config: WooCommerceConfig | Mapping[str, Any] | None = None
    ) -> bool:
        """
        Probe the shop by fetching one product.

        Args:
            config: Credentials to test without saving; stored config when None

        Returns:
            True if the request succeeded, False on any failure
        """
        adapter: WooCommerceAdapter | None = None
        try:
            if config is not None:
                if not isinstance(config, WooCommerceConfig):
                    config = WooCommerceConfig.from_mapping(dict(config))
                adapter = self._new_adapter(config)
            else:
                adapter = await self.build_client()

            await adapter.get("products", {"per_page": 1})
            self.logger.info(
                "WooCommerce connection test succeeded",
                param("url", adapter.options.url),
            )
            return True
        except Exception as e:
            self.logger.error("Error testing WooCommerce connection", e)
            return False
        finally:
            if adapter is not None:
                await adapter.close()

    async def list_products(
        self, page: int = 1, per_page: int = DEFAULT_PER_PAGE, search: str = ""
    ) -> ProductPage:
        """List shop products with pagination from X-WP-Total headers."""
        params: dict[str, Any] = {"page": page, "per_page": per_page}
        if search:
            params["search"] = search

        adapter = await self.build_client()
        response = await adapter.get("products", params)
        return ProductPage.from_response(response, page=page, per_page=per_page)

    async def get_product(self, product_id: int | str) -> dict[str, Any]:
        """
        Fetch a single product.

        Raises:
            WooCommerceProductNotFoundError: the shop answered 404
        """
        adapter = await self.build_client()
        try:
            response = await adapter.get(f"products/{product_id}")
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise WooCommerceProductNotFoundError(product_id) from e
            raise
        return response.json()

    @staticmethod
    def validate_config(data: Mapping[str, Any]) -> WooCommerceConfig:
        """
        Validate an incoming credentials payload.

        Raises:
            WooCommerceConfigError: with the list of problems found
        """
        errors: list[str] = []

        url = data.get("url")
        parsed = urlparse(url) if isinstance(url, str) else None
        if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append("url must be a valid http(s) URL")

        for key in ("consumer_key", "consumer_secret"):
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{key} is required")

        version = data.get("version") or DEFAULT_API_VERSION
        if version not in SUPPORTED_API_VERSIONS:
            errors.append(f"version must be one of {', '.join(SUPPORTED_API_VERSIONS)}")

        if errors:
            raise WooCommerceConfigError(errors)

        return WooCommerceConfig(
            url=url,
            consumer_key=data["consumer_key"],
            consumer_secret=data["consumer_secret"],
            version=version,
        )

    def _new_adapter(self, config: WooCommerceConfig) -> WooCommerceAdapter:
        options = WooCommerceOptions.from_config(
            config,
            timeout=self.settings.timeout,
            verify_ssl=self.settings.verify_ssl,
            query_string_auth=self.settings.query_string_auth,
        )
        return self.adapter_factory(
            options,
            poll_interval=self.settings.init_poll_interval,
            max_attempts=self.settings.init_max_attempts,
        )
