"""Multi-step session orchestration."""

from .logsink import LogSink
from .orchestrator import SessionOrchestrator, chain_prompt
from .state import SessionResult, SessionState

__all__ = [
    "LogSink",
    "SessionOrchestrator",
    "SessionResult",
    "SessionState",
    "chain_prompt",
]
