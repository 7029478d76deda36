"""Configuration domain models."""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

GENERAL_CATEGORY = "general"
NOTIFICATIONS_CATEGORY = "notifications"
WOOCOMMERCE_CATEGORY = "woocommerce"


class ConfigType(str, Enum):
    """Logical type of a configuration value (the stored value is always a string)."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"

    @classmethod
    def _missing_(cls, value: object) -> "ConfigType | None":
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        # Rows written by the old Node backend carry Spanish tags
        legacy = {"texto": cls.TEXT, "numero": cls.NUMBER, "booleano": cls.BOOLEAN}
        return cls._value2member_map_.get(normalized) or legacy.get(normalized)


def infer_type(value: Any) -> ConfigType:
    """Infer ConfigType from a Python value."""
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return ConfigType.BOOLEAN
    if isinstance(value, (int, float)):
        return ConfigType.NUMBER
    if isinstance(value, (dict, list, tuple)):
        return ConfigType.JSON
    return ConfigType.TEXT


def encode_value(value: Any, type_: ConfigType | None = None) -> tuple[str, ConfigType]:
    """
    Stringify a value for storage.

    Args:
        value: Python value
        type_: Explicit type tag; inferred from value when None

    Returns:
        Tuple (stored string, type tag)
    """
    tag = type_ or infer_type(value)

    if isinstance(value, str):
        return value, tag
    if isinstance(value, bool):
        return ("true" if value else "false"), tag
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False), tag
    return str(value), tag


def decode_value(raw: str, type_: ConfigType) -> Any:
    """
    Decode a stored string according to its type tag.

    Raises:
        ValueError: number is not numeric or json is malformed
    """
    if type_ is ConfigType.BOOLEAN:
        return raw.strip().lower() == "true"
    if type_ is ConfigType.NUMBER:
        try:
            return int(raw)
        except ValueError:
            return float(raw)
    if type_ is ConfigType.JSON:
        return json.loads(raw)
    return raw


@dataclass
class ConfigEntry:
    """Single row of the configuration table."""

    key: str
    value: str
    type: ConfigType = ConfigType.TEXT
    category: str = GENERAL_CATEGORY
    description: str | None = None
    updated_at: datetime | None = None
    updated_by: str = "system"

    @property
    def typed_value(self) -> Any:
        """Value decoded according to its type tag."""
        return decode_value(self.value, self.type)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation."""
        return {
            "key": self.key,
            "value": self.value,
            "type": self.type.value,
            "category": self.category,
            "description": self.description,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
        }
