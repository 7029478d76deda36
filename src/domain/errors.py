"""WooCommerce integration errors."""


class WooCommerceError(Exception):
    """Base class for integration errors raised by this service."""


class WooCommerceInitError(WooCommerceError):
    """The underlying REST client could not be constructed."""


class WooCommerceInitTimeoutError(WooCommerceError):
    """The client did not become ready within the bounded wait."""

    def __init__(self, attempts: int, interval: float) -> None:
        self.attempts = attempts
        self.interval = interval
        super().__init__(
            f"Could not initialize WooCommerce API after {attempts} attempts "
            f"({attempts * interval:.1f}s)"
        )


class WooCommerceClientError(WooCommerceError):
    """Building a client from the stored configuration failed."""


class WooCommerceConfigError(WooCommerceError):
    """Configuration payload failed validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("Invalid WooCommerce configuration: " + "; ".join(errors))


class WooCommerceProductNotFoundError(WooCommerceError):
    """Product does not exist in the shop (HTTP 404)."""

    def __init__(self, product_id: int | str) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} does not exist in WooCommerce")
