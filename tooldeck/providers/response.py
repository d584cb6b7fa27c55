"""Request and response containers exchanged with the model client."""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from ..tools.calls import ToolCall

if TYPE_CHECKING:
    from ..tools.schema import FunctionDescriptor


@dataclass(frozen=True)
class ModelRequest:
    """Everything the model client needs for one chat completion."""

    messages: tuple[dict, ...]
    functions: tuple["FunctionDescriptor", ...] = ()
    model: str = ""
    max_response_tokens: Optional[int] = None
    max_request_tokens: Optional[int] = None

    def tools_json(self) -> list[dict]:
        return [f.to_tool_json() for f in self.functions]


@dataclass(frozen=True)
class ModelResponse:
    """Immutable container for the model's answer with usage metadata.

    Either ``text`` or ``tool_calls`` (or both) may be present.
    """

    text: Optional[str] = None
    tool_calls: tuple[ToolCall, ...] = field(default=())
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
