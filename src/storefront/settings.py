"""Store-wide settings read from the ``[custom]`` table of ``domain.toml``."""

from typing import Any

from protean.utils.globals import current_domain

DEFAULTS: dict[str, Any] = {
    "STORE_CURRENCY": "IDR",
    "SHIPPING_FLAT_RATE": 15.0,
    "ORDER_NUMBER_PREFIX": "ORD-",
    "ORDER_NUMBER_MAX_ATTEMPTS": 5,
}


def store_setting(key: str) -> Any:
    """Return a store setting from the active domain, falling back to the built-in default.

    Raises KeyError for unknown keys so typos fail loudly.
    """
    default = DEFAULTS[key]
    config = current_domain.config
    custom = config.get("custom") or {}
    if key in custom:
        return custom[key]
    return config.get(key, default)
