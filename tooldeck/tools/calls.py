"""Tool calls returned by the model and the results of running them."""

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..errors import PerCallFailure


class ExecutionStrategy(enum.Enum):
    """How one batch of tool calls is executed.

    * ``SYNC``   -- one after another, in call order
    * ``ASYNC``  -- concurrent tasks on the calling event loop
    * ``THREAD`` -- like ASYNC, but each call of the first batch in a
      session gets a dedicated thread
    """

    SYNC = "sync"
    ASYNC = "async"
    THREAD = "thread"

    def nested(self) -> "ExecutionStrategy":
        """Strategy for any batch after the first one in a session."""
        if self is ExecutionStrategy.THREAD:
            return ExecutionStrategy.ASYNC
        return self


@dataclass(frozen=True)
class ToolCall:
    """One invocation requested by the model. Arguments stay raw until decoded."""

    call_id: str
    function_name: str
    arguments: Union[str, bytes] = "{}"


def format_value(value: Any) -> Optional[str]:
    """Render a handler result as text. Integral floats drop the ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class CallResult:
    call_id: str
    function_name: str
    value: Any = None
    error: Optional[PerCallFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> Optional[str]:
        if not self.ok:
            return None
        return format_value(self.value)


@dataclass(frozen=True)
class BatchResult:
    """Results of one batch, in the order the calls were given."""

    results: tuple[CallResult, ...] = ()
    strategy: ExecutionStrategy = ExecutionStrategy.ASYNC
    workers: tuple[str, ...] = field(default=(), compare=False)

    def by_id(self) -> dict[str, CallResult]:
        return {r.call_id: r for r in self.results}

    @property
    def errors(self) -> list[PerCallFailure]:
        return [r.error for r in self.results if r.error is not None]

    @property
    def successes(self) -> list[CallResult]:
        return [r for r in self.results if r.ok]

    def texts(self) -> list[str]:
        return [r.text for r in self.results if r.text]

    def combined_text(self) -> Optional[str]:
        """Successful non-empty results joined in call order, or None."""
        texts = self.texts()
        if not texts:
            return None
        return ", ".join(texts)
