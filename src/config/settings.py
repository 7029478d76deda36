"""Settings module for the desguace WooCommerce integration service."""

import os

from src.database.postgres import PostgresConfig


def _env_bool(name: str, default: bool) -> bool:
    """Read boolean flag from environment (true/1/yes)."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class WooCommerceSettings:
    """WooCommerce transport settings (credentials live in the configuration table)."""

    def __init__(self) -> None:
        self.timeout = int(os.getenv("WOOCOMMERCE_TIMEOUT", "30"))
        self.verify_ssl = _env_bool("WOOCOMMERCE_VERIFY_SSL", True)
        self.query_string_auth = _env_bool("WOOCOMMERCE_QUERY_STRING_AUTH", False)

        # Ожидание инициализации клиента: 10 попыток по 100 мс
        self.init_poll_interval = float(os.getenv("WOOCOMMERCE_INIT_POLL_INTERVAL", "0.1"))
        self.init_max_attempts = int(os.getenv("WOOCOMMERCE_INIT_MAX_ATTEMPTS", "10"))


class Settings:
    """Application settings."""

    def __init__(self) -> None:
        # Service info
        self.environment = os.getenv("ENVIRONMENT", "dev")
        self.service_name = os.getenv("SERVICE_NAME", "desguace-woocommerce")
        self.service_version = os.getenv("SERVICE_VERSION", "0.1.0")
        self.log_level = os.getenv("LOG_LEVEL", "debug")
        self.log_to_postgres = _env_bool("LOG_TO_POSTGRES", False)

        # PostgreSQL
        self.postgres = PostgresConfig()

        # WooCommerce
        self.woocommerce = WooCommerceSettings()
