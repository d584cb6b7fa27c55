"""Catalog of function descriptors.

The catalog is filled by explicit ``register`` calls at startup and then
frozen. After that it is read-only and safe to share between threads.
"""

from typing import Iterable, Iterator

from ..errors import CatalogFrozen, DuplicateName, UnknownFunction
from .schema import FunctionDescriptor


class Catalog:
    """Name -> FunctionDescriptor mapping that keeps insertion order."""

    def __init__(self, descriptors: Iterable[FunctionDescriptor] = ()):
        self._functions: dict[str, FunctionDescriptor] = {}
        self._positions: dict[str, int] = {}
        self._frozen = False
        self.register_all(descriptors)

    def register(self, descriptor: FunctionDescriptor) -> None:
        if self._frozen:
            raise CatalogFrozen(descriptor.name)
        if descriptor.name in self._functions:
            raise DuplicateName(descriptor.name)
        self._positions[descriptor.name] = len(self._functions)
        self._functions[descriptor.name] = descriptor

    def register_all(self, descriptors: Iterable[FunctionDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def freeze(self) -> "Catalog":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, name: str) -> FunctionDescriptor:
        try:
            return self._functions[name]
        except KeyError:
            raise UnknownFunction(name) from None

    def total_token_cost(self, names: Iterable[str]) -> int:
        """Sum the token cost of ``names``. Duplicates are counted once."""
        return sum(self.resolve(name).token_cost for name in set(names))

    def position(self, name: str) -> int:
        """Insertion index of ``name``."""
        try:
            return self._positions[name]
        except KeyError:
            raise UnknownFunction(name) from None

    def names(self) -> list[str]:
        return list(self._functions)

    def advertised_names(self) -> list[str]:
        """Names the model may be offered; free-form entry points are hidden."""
        return [name for name, d in self._functions.items() if d.advertised]

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self) -> Iterator[FunctionDescriptor]:
        return iter(self._functions.values())
