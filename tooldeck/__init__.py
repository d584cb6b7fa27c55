"""ToolDeck - token-aware function catalog and multi-step tool execution."""

__version__ = "0.1.0"

from .config import ConfigManager, EngineSettings
from .relevance import RelevanceIndex, SelectionRequest, Selector
from .session import LogSink, SessionOrchestrator, SessionResult
from .tools import Catalog, Dispatcher, ExecutionStrategy, ToolCall, build_catalog

__all__ = [
    "Catalog",
    "ConfigManager",
    "Dispatcher",
    "EngineSettings",
    "ExecutionStrategy",
    "LogSink",
    "RelevanceIndex",
    "SelectionRequest",
    "Selector",
    "SessionOrchestrator",
    "SessionResult",
    "ToolCall",
    "build_catalog",
]
