"""Function descriptors and the builders that produce them.

A descriptor is the static metadata for one callable function: its name,
description, argument specs and precomputed token cost. Descriptors are
built once at startup, either explicitly with ``build_descriptor`` or by
introspecting a Python callable with ``callable_to_descriptor``.
"""

import enum
import inspect
import json
import types
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Optional,
    Sequence,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from ..errors import ArgumentError
from .tokens import (
    TokenCounter,
    array_arg_cost,
    enum_arg_cost,
    function_cost,
    get_default_counter,
    scalar_arg_cost,
)


_TYPE_MAP = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


class ArgKind(enum.Enum):
    ENUM = "enum"
    SCALAR = "scalar"
    ARRAY = "array"


class FunctionKind(enum.Enum):
    """What happens when the model calls a function.

    STRUCTURED functions run their handler. MULTI_STEP and FREE_FORM
    re-enter the session orchestrator with a prompt list or a single
    free-form prompt.
    """

    STRUCTURED = "structured"
    MULTI_STEP = "multi_step"
    FREE_FORM = "free_form"


@dataclass(frozen=True)
class ArgSpec:
    """One argument of a function.

    ``json_type`` is the scalar type for SCALAR args and the item type for
    ARRAY args. ENUM args are always strings drawn from ``choices``.
    """

    name: str
    kind: ArgKind
    json_type: str = "string"
    description: str = ""
    choices: tuple[str, ...] = ()
    enum_type: Optional[type] = None
    required: bool = True
    description_tokens: Optional[int] = None

    def cost(self, counter: TokenCounter) -> int:
        if self.kind is ArgKind.ENUM:
            return enum_arg_cost(
                counter, self.name, self.description, self.choices,
                self.description_tokens,
            )
        if self.kind is ArgKind.ARRAY:
            return array_arg_cost(
                counter, self.name, self.description, self.json_type,
                self.description_tokens,
            )
        return scalar_arg_cost(
            counter, self.name, self.description, self.json_type,
            self.description_tokens,
        )

    def to_schema(self) -> dict:
        if self.kind is ArgKind.ENUM:
            schema = {"type": "string", "enum": list(self.choices)}
        elif self.kind is ArgKind.ARRAY:
            schema = {"type": "array", "items": {"type": self.json_type}}
        else:
            schema = {"type": self.json_type}
        if self.description:
            schema["description"] = self.description
        return schema


def enum_arg(
    name: str,
    choices: Union[type, Sequence[str]],
    description: str = "",
    description_tokens: Optional[int] = None,
) -> ArgSpec:
    """Build an ENUM arg from an ``enum.Enum`` subclass or a list of labels."""
    enum_type = None
    if isinstance(choices, type) and issubclass(choices, enum.Enum):
        enum_type = choices
        labels = tuple(member.name for member in choices)
    else:
        labels = tuple(str(c) for c in choices)
    if not labels:
        raise ValueError(f"Enumerated argument '{name}' has no choices")
    return ArgSpec(
        name=name,
        kind=ArgKind.ENUM,
        description=description,
        choices=labels,
        enum_type=enum_type,
        description_tokens=description_tokens,
    )


def scalar_arg(
    name: str,
    json_type: str = "string",
    description: str = "",
    required: bool = True,
    description_tokens: Optional[int] = None,
) -> ArgSpec:
    return ArgSpec(
        name=name,
        kind=ArgKind.SCALAR,
        json_type=json_type,
        description=description,
        required=required,
        description_tokens=description_tokens,
    )


def array_arg(
    name: str,
    item_type: str = "string",
    description: str = "",
    required: bool = True,
    description_tokens: Optional[int] = None,
) -> ArgSpec:
    return ArgSpec(
        name=name,
        kind=ArgKind.ARRAY,
        json_type=item_type,
        description=description,
        required=required,
        description_tokens=description_tokens,
    )


Decoder = Callable[["FunctionDescriptor", Union[str, bytes]], dict]


@dataclass(frozen=True)
class FunctionDescriptor:
    """Immutable metadata and handler for one catalog function."""

    name: str
    description: str
    parameters: tuple[ArgSpec, ...]
    token_cost: int
    handler: Optional[Callable] = field(default=None, compare=False)
    kind: FunctionKind = FunctionKind.STRUCTURED
    decoder: Optional[Decoder] = field(default=None, compare=False)

    @property
    def advertised(self) -> bool:
        return self.kind is not FunctionKind.FREE_FORM

    def to_tool_json(self) -> dict:
        """OpenAI tool entry. Every parameter is listed as required."""
        properties = {p.name: p.to_schema() for p in self.parameters}
        function = {
            "name": self.name,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": list(properties),
            },
        }
        if self.description:
            function["description"] = self.description
        return {"type": "function", "function": function}

    def decode(self, raw: Union[str, bytes]) -> dict:
        decoder = self.decoder or decode_arguments
        return decoder(self, raw)


def build_descriptor(
    name: str,
    description: str,
    parameters: Sequence[ArgSpec] = (),
    handler: Optional[Callable] = None,
    kind: FunctionKind = FunctionKind.STRUCTURED,
    decoder: Optional[Decoder] = None,
    counter: Optional[TokenCounter] = None,
    description_tokens: Optional[int] = None,
) -> FunctionDescriptor:
    """Build a descriptor and precompute its token cost."""
    if not name:
        raise ValueError("Function name must not be empty")
    counter = counter or get_default_counter()
    params = tuple(parameters)
    cost = function_cost(
        counter,
        description,
        [p.cost(counter) for p in params],
        description_tokens,
    )
    return FunctionDescriptor(
        name=name,
        description=description,
        parameters=params,
        token_cost=cost,
        handler=handler,
        kind=kind,
        decoder=decoder,
    )


def multi_step_descriptor(
    name: str = "CallMultiStep",
    description: str = "",
    counter: Optional[TokenCounter] = None,
) -> FunctionDescriptor:
    """Entry point that runs a list of dependent prompts as one session."""
    return build_descriptor(
        name,
        description,
        [array_arg("prompt_list", "string")],
        kind=FunctionKind.MULTI_STEP,
        counter=counter,
    )


def free_form_descriptor(
    name: str = "GPT",
    description: str = "",
    counter: Optional[TokenCounter] = None,
) -> FunctionDescriptor:
    """Free-form natural-language entry point. Never advertised."""
    return build_descriptor(
        name,
        description,
        [scalar_arg("prompt", "string")],
        kind=FunctionKind.FREE_FORM,
        counter=counter,
    )


def _annotation_to_arg(
    name: str, annotation: Any, description: str, required: bool,
) -> ArgSpec:
    """Convert a Python type annotation to an ArgSpec."""
    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return enum_arg(name, annotation, description)

    json_type = _TYPE_MAP.get(annotation)
    if json_type:
        return scalar_arg(name, json_type, description, required)

    origin = get_origin(annotation)
    args = get_args(annotation)

    # Optional[X], Union[X, None] and X | None
    if origin in (Union, types.UnionType) and len(args) == 2 and type(None) in args:
        inner = [a for a in args if a is not type(None)][0]
        return _annotation_to_arg(name, inner, description, False)

    if origin in (list, tuple):
        item = args[0] if args else str
        return array_arg(name, _TYPE_MAP.get(item, "string"), description, required)

    return scalar_arg(name, "string", description, required)


def callable_to_descriptor(
    name: str,
    fn: Callable,
    description: str = "",
    counter: Optional[TokenCounter] = None,
) -> FunctionDescriptor:
    """Build a STRUCTURED descriptor from a callable's signature and docstring.

    Args:
        name: Function name advertised to the model.
        fn: The handler to introspect.
        description: Fallback description if the function has no docstring.

    Returns:
        A descriptor whose arguments come from the type annotations.
    """
    sig = inspect.signature(fn)
    doc = inspect.getdoc(fn) or description
    summary = _docstring_summary(doc)

    try:
        hints = get_type_hints(fn)
    except Exception:
        hints = {}

    params = []
    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls"):
            continue
        annotation = hints.get(param_name, param.annotation)
        params.append(
            _annotation_to_arg(
                param_name,
                annotation,
                _extract_param_doc(doc, param_name) or "",
                param.default is inspect.Parameter.empty,
            )
        )

    return build_descriptor(name, summary, params, handler=fn, counter=counter)


def _docstring_summary(doc: str) -> str:
    """Everything before the ``Args:`` section."""
    if not doc:
        return ""
    lines = []
    for line in doc.split("\n"):
        if line.strip().lower().startswith(("args:", "returns:", "raises:")):
            break
        lines.append(line)
    return " ".join(part.strip() for part in lines if part.strip())


def _extract_param_doc(docstring: str, param_name: str) -> Optional[str]:
    """Extract a parameter's description from a Google-style docstring."""
    if not docstring:
        return None

    in_args = False
    for line in docstring.split("\n"):
        stripped = line.strip()

        if stripped.lower().startswith("args:"):
            in_args = True
            continue

        if in_args:
            if stripped.lower().startswith(("returns:", "raises:")):
                return None
            if stripped.startswith(f"{param_name}:") or stripped.startswith(f"{param_name} ("):
                colon_idx = stripped.index(":")
                return stripped[colon_idx + 1:].strip()

    return None


def decode_arguments(descriptor: FunctionDescriptor, raw: Union[str, bytes]) -> dict:
    """Default decoder: parse the JSON arguments and validate them.

    Enum labels are converted to members of the argument's ``enum_type``.
    Keys the descriptor does not know are dropped.
    """
    try:
        data = json.loads(raw or "{}")
    except (TypeError, ValueError) as e:
        raise ArgumentError(descriptor.name, f"malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise ArgumentError(descriptor.name, "arguments must be a JSON object")

    kwargs = {}
    for spec in descriptor.parameters:
        if spec.name not in data:
            if spec.required:
                raise ArgumentError(descriptor.name, f"missing '{spec.name}'")
            continue
        kwargs[spec.name] = _coerce(descriptor.name, spec, data[spec.name])
    return kwargs


def _coerce(function: str, spec: ArgSpec, value: Any) -> Any:
    if spec.kind is ArgKind.ENUM:
        if value not in spec.choices:
            raise ArgumentError(
                function,
                f"'{spec.name}' must be one of {', '.join(spec.choices)}; got {value!r}",
            )
        return spec.enum_type[value] if spec.enum_type else value

    if spec.kind is ArgKind.ARRAY:
        if not isinstance(value, list):
            raise ArgumentError(function, f"'{spec.name}' must be an array")
        return [_coerce_scalar(function, spec, item) for item in value]

    return _coerce_scalar(function, spec, value)


def _coerce_scalar(function: str, spec: ArgSpec, value: Any) -> Any:
    json_type = spec.json_type
    if json_type == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ArgumentError(function, f"'{spec.name}' must be a number")
        return float(value)
    if json_type == "integer":
        if isinstance(value, bool) or not isinstance(value, int):
            raise ArgumentError(function, f"'{spec.name}' must be an integer")
        return value
    if json_type == "boolean":
        if not isinstance(value, bool):
            raise ArgumentError(function, f"'{spec.name}' must be a boolean")
        return value
    if not isinstance(value, str):
        raise ArgumentError(function, f"'{spec.name}' must be a string")
    return value
