"""Model client and embedder collaborators."""

from .base import BaseProvider, Embedder, ModelClient, ProviderConfig
from .openai_provider import OpenAIProvider
from .registry import create_provider, get_registry, register_provider
from .response import ModelRequest, ModelResponse

__all__ = [
    "BaseProvider",
    "Embedder",
    "ModelClient",
    "ProviderConfig",
    "OpenAIProvider",
    "ModelRequest",
    "ModelResponse",
    "create_provider",
    "get_registry",
    "register_provider",
]
