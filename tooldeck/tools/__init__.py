"""Function catalog, token accounting and tool-call dispatch.

Builds a frozen catalog from all registered plugins.
"""

from typing import Iterable, Optional

from .calls import BatchResult, CallResult, ExecutionStrategy, ToolCall
from .catalog import Catalog
from .executor import Dispatcher
from .schema import (
    ArgKind,
    ArgSpec,
    FunctionDescriptor,
    FunctionKind,
    build_descriptor,
    callable_to_descriptor,
)
from .tokens import TiktokenCounter, TokenCounter


def build_catalog(
    plugins: Optional[Iterable[str]] = None,
    counter: Optional[TokenCounter] = None,
) -> Catalog:
    """Collect the functions of the named plugins (default: all) into a frozen catalog."""
    from ..plugins.registry import load_plugins

    catalog = Catalog()
    for plugin in load_plugins(plugins):
        catalog.register_all(plugin.get_functions(counter))
    return catalog.freeze()


__all__ = [
    "ArgKind",
    "ArgSpec",
    "BatchResult",
    "CallResult",
    "Catalog",
    "Dispatcher",
    "ExecutionStrategy",
    "FunctionDescriptor",
    "FunctionKind",
    "TiktokenCounter",
    "TokenCounter",
    "ToolCall",
    "build_catalog",
    "build_descriptor",
    "callable_to_descriptor",
]
