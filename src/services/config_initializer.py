"""Default configuration seeding and dumps."""

from typing import Any

from src.domain.config import (
    GENERAL_CATEGORY,
    NOTIFICATIONS_CATEGORY,
    ConfigType,
    infer_type,
)
from src.logger.logger import get_logger
from src.logger.types import Category, param
from src.repository.config_repository import ConfigRepository

DEFAULT_GENERAL: dict[str, Any] = {
    "nombre_empresa": "Kacum Desguaces",
    "identificacion_fiscal": "B12345678",
    "direccion": "Calle Principal 123",
    "ciudad": "Madrid",
    "codigo_postal": "28001",
    "telefono": "912345678",
    "email": "info@kacum-desguaces.com",
    "sitio_web": "https://kacum-desguaces.com",
    "modo_oscuro": False,
}

DEFAULT_NOTIFICATIONS: dict[str, bool] = {
    "email_nuevos_pedidos": True,
    "email_nuevas_incidencias": True,
    "email_nuevos_clientes": False,
    "notif_stock_bajo": True,
    "notif_seguridad": True,
}


def initialize_defaults(
    repository: ConfigRepository,
    general: dict[str, Any] | None = None,
    notifications: dict[str, bool] | None = None,
) -> int:
    """
    Write default general and notification settings.

    General values are tagged by their Python type, notification values are
    always boolean. Existing rows are overwritten.

    Returns:
        Number of entries written
    """
    logger = get_logger().with_category(Category.CONFIG)
    general = DEFAULT_GENERAL if general is None else general
    notifications = DEFAULT_NOTIFICATIONS if notifications is None else notifications

    written = 0
    try:
        for key, value in general.items():
            repository.upsert(
                key,
                value,
                type_=infer_type(value),
                category=GENERAL_CATEGORY,
                description=f"General configuration: {key}",
            )
            written += 1

        for key, value in notifications.items():
            repository.upsert(
                key,
                bool(value),
                type_=ConfigType.BOOLEAN,
                category=NOTIFICATIONS_CATEGORY,
                description=f"Notification configuration: {key}",
            )
            written += 1
    except Exception as e:
        logger.error("Error initializing configuration", e, param("written", written))
        raise

    logger.info("Configuration initialized", param("written", written))
    return written


def dump_config(repository: ConfigRepository) -> list[dict[str, Any]]:
    """All configuration rows as JSON-serializable dicts."""
    entries = repository.get_all()
    get_logger().with_category(Category.CONFIG).debug(
        "Configuration dumped", param("count", len(entries))
    )
    return [entry.to_dict() for entry in entries]
