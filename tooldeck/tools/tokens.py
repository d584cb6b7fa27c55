"""Token accounting for function descriptors and chat messages.

Costs are estimates: they only match the model's real usage when the
counter uses the same encoding as the model client.
"""

from typing import Optional, Protocol, Sequence

# Fixed JSON overhead per function and per argument kind, measured against
# the cl100k_base encoding of the OpenAI tool schema.
FUNCTION_OVERHEAD = 12
ENUM_ARG_OVERHEAD = 11
SCALAR_ARG_OVERHEAD = 7
ARRAY_ARG_OVERHEAD = 10

MESSAGE_OVERHEAD = 3
REPLY_PRIMER = 3

DEFAULT_ENCODING = "cl100k_base"


class TokenCounter(Protocol):
    def count(self, text: str) -> int:
        ...


class TiktokenCounter:
    """Token counter backed by tiktoken.

    The encoding is loaded on first use, since tiktoken may need to fetch
    its BPE ranks.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding_name
        self._enc = None

    def _encoding(self):
        if self._enc is None:
            import tiktoken

            self._enc = tiktoken.get_encoding(self.encoding_name)
        return self._enc

    def count(self, text: str) -> int:
        if not text:
            return 0
        return len(self._encoding().encode_ordinary(text))


_default_counter: Optional[TiktokenCounter] = None


def get_default_counter() -> TiktokenCounter:
    """Return the process-wide cl100k_base counter."""
    global _default_counter
    if _default_counter is None:
        _default_counter = TiktokenCounter()
    return _default_counter


def _text_cost(counter: TokenCounter, text: str, override: Optional[int]) -> int:
    if override is not None:
        return override
    return counter.count(text)


def enum_arg_cost(
    counter: TokenCounter,
    name: str,
    description: str,
    choices: Sequence[str],
    description_tokens: Optional[int] = None,
) -> int:
    """Cost of an enumerated argument.

    The name appears twice in the schema: under ``properties`` and in
    ``required``.
    """
    total = _text_cost(counter, description, description_tokens)
    total += 2 * counter.count(name)
    total += sum(counter.count(choice) for choice in choices)
    return total + ENUM_ARG_OVERHEAD


def scalar_arg_cost(
    counter: TokenCounter,
    name: str,
    description: str,
    json_type: str,
    description_tokens: Optional[int] = None,
) -> int:
    total = _text_cost(counter, description, description_tokens)
    total += 2 * counter.count(name)
    total += counter.count(json_type)
    return total + SCALAR_ARG_OVERHEAD


def array_arg_cost(
    counter: TokenCounter,
    name: str,
    description: str,
    item_type: str,
    description_tokens: Optional[int] = None,
) -> int:
    total = _text_cost(counter, description, description_tokens)
    total += 2 * counter.count(name)
    total += counter.count(item_type)
    return total + ARRAY_ARG_OVERHEAD


def function_cost(
    counter: TokenCounter,
    description: str,
    arg_costs: Sequence[int],
    description_tokens: Optional[int] = None,
) -> int:
    total = _text_cost(counter, description, description_tokens)
    return total + sum(arg_costs) + FUNCTION_OVERHEAD


def count_messages(counter: TokenCounter, messages: Sequence[dict]) -> int:
    """Estimate prompt tokens for a chat message list."""
    if not messages:
        return 0
    total = 0
    for message in messages:
        total += MESSAGE_OVERHEAD
        content = message.get("content")
        if isinstance(content, str):
            total += counter.count(content)
    return total + REPLY_PRIMER
