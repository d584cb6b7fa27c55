"""Provider classes keyed by name.

Provider modules add themselves with ``@register_provider`` when imported;
the CLI builds the configured one with ``create_provider``.
"""

from typing import Dict, Type

from ..errors import ConfigError
from .base import BaseProvider, ProviderConfig

_PROVIDERS: Dict[str, Type[BaseProvider]] = {}


def register_provider(name: str):
    """Class decorator adding a BaseProvider subclass under ``name``."""
    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, BaseProvider)):
            raise TypeError(f"{cls!r} is not a BaseProvider subclass")
        _PROVIDERS[name] = cls
        return cls
    return decorator


def get_registry() -> Dict[str, Type[BaseProvider]]:
    return dict(_PROVIDERS)


def create_provider(name: str, config: ProviderConfig) -> BaseProvider:
    """Instantiate the provider registered as ``name``.

    Raises:
        ConfigError: No provider is registered under ``name``.
    """
    try:
        provider_cls = _PROVIDERS[name]
    except KeyError:
        known = ", ".join(sorted(_PROVIDERS)) or "none"
        raise ConfigError(f"Unknown provider: {name} (registered: {known})") from None
    return provider_cls(config)


def clear_registry() -> None:
    _PROVIDERS.clear()
