"""Embedding archive and token-budgeted function selection."""

from .index import (
    EmbeddingRecord,
    RelevanceIndex,
    append_records,
    build_index,
    write_index,
)
from .selector import SelectionRequest, SelectionResult, Selector

__all__ = [
    "EmbeddingRecord",
    "RelevanceIndex",
    "SelectionRequest",
    "SelectionResult",
    "Selector",
    "append_records",
    "build_index",
    "write_index",
]
