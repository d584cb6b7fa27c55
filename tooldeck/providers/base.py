"""Base interfaces for the model client and the embedder."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .response import ModelRequest, ModelResponse


@dataclass
class ProviderConfig:
    """Configuration for a provider."""
    api_key: str
    model: str
    base_url: Optional[str] = None
    temperature: float = 0.7
    embedding_model: Optional[str] = None
    timeout: float = 60.0


class ModelClient(ABC):
    """Chat-completion API that may answer with text or tool calls."""

    @abstractmethod
    async def complete(self, request: "ModelRequest") -> "ModelResponse":
        """Send one request and return the first choice."""


class Embedder(ABC):
    """Turns text into a fixed-length vector."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Return the embedding of ``text``."""


class BaseProvider(ModelClient, Embedder):
    """A remote API offering both chat completions and embeddings."""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.name = self.__class__.__name__

    def validate(self) -> bool:
        """Validate provider configuration."""
        return bool(self.config.api_key and self.config.model)
