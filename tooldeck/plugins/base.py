"""Base plugin interface for contributing functions to the catalog."""

from abc import ABC, abstractmethod
from typing import Optional

from ..tools.schema import FunctionDescriptor
from ..tools.tokens import TokenCounter


class BasePlugin(ABC):
    """Abstract base class for all ToolDeck plugins."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin identifier."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description of what this plugin provides."""

    @abstractmethod
    def get_functions(
        self, counter: Optional[TokenCounter] = None,
    ) -> list[FunctionDescriptor]:
        """Return the descriptors this plugin registers, in catalog order."""
