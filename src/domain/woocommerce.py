"""WooCommerce domain models."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ApiVersion(str, Enum):
    """WooCommerce REST API versions accepted by the client."""

    WC_V1 = "wc/v1"
    WC_V2 = "wc/v2"
    WC_V3 = "wc/v3"
    LEGACY_V1 = "wc-api/v1"
    LEGACY_V2 = "wc-api/v2"
    LEGACY_V3 = "wc-api/v3"

    @property
    def is_legacy(self) -> bool:
        """Legacy wc-api endpoints are not served under /wp-json."""
        return self.value.startswith("wc-api/")


DEFAULT_API_VERSION = ApiVersion.WC_V3.value
SUPPORTED_API_VERSIONS = tuple(v.value for v in ApiVersion)


@dataclass
class WooCommerceConfig:
    """
    Credentials projected from the 'woocommerce' configuration category.

    Field names match the configuration keys.
    """

    url: str | None = ""
    consumer_key: str | None = ""
    consumer_secret: str | None = ""
    version: str | None = DEFAULT_API_VERSION

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        """Configuration keys recognized in the category."""
        return tuple(cls.__dataclass_fields__)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "WooCommerceConfig":
        """Build from a mapping, ignoring unknown keys and keeping defaults for missing ones."""
        config = cls()
        for key in cls.keys():
            if key in data:
                setattr(config, key, data[key])
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def masked(self) -> dict[str, Any]:
        """Representation safe for logs and console output."""
        data = self.to_dict()
        secret = data.get("consumer_secret") or ""
        data["consumer_secret"] = f"{'*' * 8}{secret[-4:]}" if secret else ""
        return data


@dataclass
class WooCommerceOptions:
    """Constructor arguments of the WooCommerce adapter."""

    url: str
    consumer_key: str
    consumer_secret: str
    version: str = DEFAULT_API_VERSION
    timeout: int = 30
    verify_ssl: bool = True
    query_string_auth: bool = False

    @classmethod
    def from_config(
        cls,
        config: WooCommerceConfig,
        timeout: int = 30,
        verify_ssl: bool = True,
        query_string_auth: bool = False,
    ) -> "WooCommerceOptions":
        return cls(
            url=config.url or "",
            consumer_key=config.consumer_key or "",
            consumer_secret=config.consumer_secret or "",
            version=config.version or DEFAULT_API_VERSION,
            timeout=timeout,
            verify_ssl=verify_ssl,
            query_string_auth=query_string_auth,
        )

    @property
    def api_version(self) -> ApiVersion:
        """
        Parsed version.

        Raises:
            ValueError: version is not one of SUPPORTED_API_VERSIONS
        """
        return ApiVersion(self.version)


@dataclass
class ProductPage:
    """One page of a product listing with pagination taken from response headers."""

    products: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    total_pages: int = 1
    page: int = 1
    per_page: int = 50

    @classmethod
    def from_response(cls, response: Any, page: int, per_page: int) -> "ProductPage":
        """
        Build from a listing response.

        Args:
            response: requests.Response of GET products
            page: Requested page
            per_page: Requested page size
        """
        headers = response.headers
        return cls(
            products=response.json(),
            total=_header_int(headers, "X-WP-Total", 0),
            total_pages=_header_int(headers, "X-WP-TotalPages", 1),
            page=page,
            per_page=per_page,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "products": self.products,
            "pagination": {
                "total": self.total,
                "total_pages": self.total_pages,
                "page": self.page,
                "per_page": self.per_page,
            },
        }


def _header_int(headers: Any, name: str, default: int) -> int:
    try:
        return int(headers.get(name) or default)
    except (TypeError, ValueError):
        return default
