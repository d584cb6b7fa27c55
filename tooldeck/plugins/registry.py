"""Plugin classes keyed by name, filled by ``@register_plugin`` on import."""

from typing import Dict, Iterable, List, Optional, Type

from ..errors import ConfigError
from .base import BasePlugin

_PLUGINS: Dict[str, Type[BasePlugin]] = {}


def register_plugin(name: str):
    """Class decorator adding a BasePlugin subclass under ``name``."""
    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, BasePlugin)):
            raise TypeError(f"{cls!r} is not a BasePlugin subclass")
        _PLUGINS[name] = cls
        return cls
    return decorator


def get_plugin_registry() -> Dict[str, Type[BasePlugin]]:
    return dict(_PLUGINS)


def load_plugins(names: Optional[Iterable[str]] = None) -> List[BasePlugin]:
    """Instantiate the named plugins, or every registered one in registration order.

    Raises:
        ConfigError: A name is not registered.
    """
    selected = list(names) if names is not None else list(_PLUGINS)
    unknown = [n for n in selected if n not in _PLUGINS]
    if unknown:
        raise ConfigError(f"Unknown plugin: {', '.join(unknown)}")
    return [_PLUGINS[n]() for n in selected]


def clear_plugin_registry() -> None:
    _PLUGINS.clear()
