"""Plugins that contribute functions to the catalog."""

from .base import BasePlugin
from .registry import get_plugin_registry, load_plugins, register_plugin

# Import built-in plugins to trigger registration
from .arithmetic import ArithmeticPlugin
from .weather import WeatherPlugin

__all__ = [
    "BasePlugin",
    "ArithmeticPlugin",
    "WeatherPlugin",
    "register_plugin",
    "get_plugin_registry",
    "load_plugins",
]
