"""Mutable state owned by one multi-step session."""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from ..errors import PerCallFailure


@dataclass
class SessionState:
    """State shared by the steps of one session.

    ``prior_result`` is only read or written while holding ``lock``, and the
    lock is never held across a model or handler call.
    """

    depth: int = 0
    prior_result: Optional[str] = None
    collected_args: list[str] = field(default_factory=list)
    errors: list[PerCallFailure] = field(default_factory=list)
    batches_dispatched: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def take_prior(self) -> Optional[str]:
        async with self.lock:
            return self.prior_result

    async def store_result(self, text: Optional[str]) -> None:
        async with self.lock:
            self.prior_result = text or None


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a session: the last non-empty step result.

    ``errors`` holds every per-call failure from the session's batches.
    """

    text: Optional[str] = None
    collected_args: tuple[str, ...] = ()
    errors: tuple[PerCallFailure, ...] = ()
    steps_run: int = 0
    steps_skipped: int = 0
