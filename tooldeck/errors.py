"""Exception hierarchy for ToolDeck.

Catalog and budget errors are raised straight to the caller. Per-call
failures are collected on batch results, and step failures abort the
remaining steps of a session.
"""

from typing import Optional


class ToolDeckError(Exception):
    """Base class for every error raised by ToolDeck."""


class ConfigError(ToolDeckError):
    """Configuration is missing a value or holds an invalid one."""


# -- catalog ---------------------------------------------------------------

class CatalogError(ToolDeckError):
    """Base class for catalog errors."""


class DuplicateName(CatalogError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Function '{name}' is already registered")


class UnknownFunction(CatalogError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class CatalogFrozen(CatalogError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Catalog is frozen; cannot register '{name}'")


# -- selection -------------------------------------------------------------

class SelectionError(ToolDeckError):
    """Base class for relevance selection errors."""


class IndexUnavailable(SelectionError):
    """No usable embedding archive. Selection fails open on this error."""

    def __init__(self, path: str, reason: str = "not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"Embedding index unavailable at {path}: {reason}")


class IndexCorrupt(IndexUnavailable):
    """The archive exists but does not pass validation."""


class BudgetExceeded(SelectionError):
    def __init__(self, required_cost: int, budget: int):
        self.required_cost = required_cost
        self.budget = budget
        super().__init__(
            f"Required functions need {required_cost} tokens "
            f"but the budget is {budget}"
        )


# -- dispatch --------------------------------------------------------------

class ArgumentError(ToolDeckError):
    def __init__(self, function: str, reason: str):
        self.function = function
        self.reason = reason
        super().__init__(f"Invalid arguments for {function}: {reason}")


class PerCallFailure(ToolDeckError):
    """One call in a batch failed. Stored on the result, never raised out of a batch."""

    def __init__(self, call_id: str, function: str, cause: BaseException):
        self.call_id = call_id
        self.function = function
        self.cause = cause
        super().__init__(f"Call {call_id} ({function}) failed: {cause}")


class RecursionLimitExceeded(ToolDeckError):
    def __init__(self, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(
            f"Nested session depth {depth} exceeds the limit of {limit}"
        )


# -- session ---------------------------------------------------------------

class StepFailure(ToolDeckError):
    """A step failed; the rest of the session is abandoned."""

    def __init__(
        self,
        step: int,
        stage: str,
        cause: BaseException,
        prompt: Optional[str] = None,
    ):
        self.step = step
        self.stage = stage
        self.cause = cause
        self.prompt = prompt
        super().__init__(f"Step {step + 1} failed during {stage}: {cause}")


# -- providers -------------------------------------------------------------

class ModelClientError(ToolDeckError):
    """The chat-completion call failed or returned something unusable."""


class EmbeddingError(ToolDeckError):
    """The embedding call failed or returned no vector."""
