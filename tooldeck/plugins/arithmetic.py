"""Arithmetic functions plus the multi-step and free-form entry points."""

import enum
import logging
import math
from typing import Optional

from ..tools.schema import (
    FunctionDescriptor,
    callable_to_descriptor,
    free_form_descriptor,
    multi_step_descriptor,
)
from ..tools.tokens import TokenCounter
from .base import BasePlugin
from .registry import register_plugin

_log = logging.getLogger(__name__)

MULTI_STEP_DESCRIPTION = (
    "CallMultiStep processes complex, multi-step requests. It takes an array "
    "of text prompts, one per step of a sequential task, where the output of "
    "one step is the input of the next. Keep the steps in dependency order "
    "and put independent tasks of the same step into a single prompt so they "
    "run in parallel."
)


class RoundingMode(enum.Enum):
    """Different modes to round a number."""

    NoRounding = "no_rounding"
    Nearest = "nearest"
    Zero = "zero"
    Up = "up"
    Down = "down"

    def round(self, number: float) -> float:
        if self is RoundingMode.Nearest:
            # Half away from zero, not banker's rounding.
            return math.copysign(math.floor(abs(number) + 0.5), number)
        if self is RoundingMode.Zero:
            return float(math.trunc(number))
        if self is RoundingMode.Up:
            return float(math.ceil(number))
        if self is RoundingMode.Down:
            return float(math.floor(number))
        return number


def add(a: float, b: float, rounding_mode: RoundingMode) -> float:
    """Adds two numbers

    Args:
        rounding_mode: Different modes to round a number.
    """
    result = rounding_mode.round(a + b)
    _log.info("Adding %s and %s (%s): %s", a, b, rounding_mode.name, result)
    return result


def subtract(a: float, b: float, rounding_mode: RoundingMode) -> float:
    """Subtracts two numbers

    Args:
        rounding_mode: Different modes to round a number.
    """
    result = rounding_mode.round(a - b)
    _log.info("Subtracting %s from %s (%s): %s", b, a, rounding_mode.name, result)
    return result


def multiply(a: float, b: float, rounding_mode: RoundingMode) -> float:
    """Multiplies two numbers

    Args:
        rounding_mode: Different modes to round a number.
    """
    result = rounding_mode.round(a * b)
    _log.info("Multiplying %s and %s (%s): %s", a, b, rounding_mode.name, result)
    return result


def divide(a: float, b: float, rounding_mode: RoundingMode) -> float:
    """Divides two numbers

    Args:
        rounding_mode: Different modes to round a number.
    """
    if b == 0:
        raise ZeroDivisionError("Cannot divide by zero")
    result = rounding_mode.round(a / b)
    _log.info("Dividing %s by %s (%s): %s", a, b, rounding_mode.name, result)
    return result


@register_plugin("arithmetic")
class ArithmeticPlugin(BasePlugin):
    """Four rounding-aware operations and the session entry points."""

    @property
    def name(self) -> str:
        return "arithmetic"

    @property
    def description(self) -> str:
        return "Add, subtract, multiply and divide with a rounding mode"

    def get_functions(
        self, counter: Optional[TokenCounter] = None,
    ) -> list[FunctionDescriptor]:
        return [
            callable_to_descriptor("Add", add, counter=counter),
            callable_to_descriptor("Subtract", subtract, counter=counter),
            callable_to_descriptor("Multiply", multiply, counter=counter),
            callable_to_descriptor("Divide", divide, counter=counter),
            multi_step_descriptor(
                "CallMultiStep", MULTI_STEP_DESCRIPTION, counter=counter,
            ),
            free_form_descriptor("GPT", counter=counter),
        ]
