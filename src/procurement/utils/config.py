"""Access to the ``[custom]`` section of domain.toml."""

from protean.utils.globals import current_domain

_DEFAULTS = {
    "CURRENCY": "USD",
    "DEFAULT_RELEASE_REASON": "Order completed successfully",
    "DEFAULT_REFUND_REASON": "Order cancelled or issue resolved",
}


def setting(name: str):
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, _DEFAULTS.get(name))
