"""Token-budgeted relevance selection.

Given a prompt embedding, picks which catalog functions to advertise:
required functions first, then the most similar candidates that still
fit in the remaining budget.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import BudgetExceeded, IndexUnavailable
from ..tools.catalog import Catalog
from .index import RelevanceIndex

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionRequest:
    prompt_embedding: Optional[Sequence[float]]
    token_budget: int
    required_names: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SelectionResult:
    """Ordered names to advertise.

    ``filtered`` is False when no index was available and the whole
    catalog was returned.
    """

    names: tuple[str, ...]
    token_cost: int
    filtered: bool = True

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self.names


class Selector:
    """Choose the advertised subset of a catalog for one prompt."""

    def __init__(self, catalog: Catalog, index: Optional[RelevanceIndex] = None):
        self._catalog = catalog
        self._index = index

    @classmethod
    def from_path(
        cls, catalog: Catalog, path: Optional[Union[str, Path]],
    ) -> "Selector":
        """Open the archive at ``path``; without one, select everything."""
        if not path:
            return cls(catalog)
        try:
            index = RelevanceIndex.open(path)
        except IndexUnavailable as e:
            log = _log.warning if e.path and Path(e.path).exists() else _log.info
            log("Relevance filtering disabled: %s", e)
            return cls(catalog)
        return cls(catalog, index)

    @property
    def index(self) -> Optional[RelevanceIndex]:
        return self._index

    @property
    def filtering(self) -> bool:
        return self._index is not None

    def select(self, request: SelectionRequest) -> SelectionResult:
        """Pick functions for one prompt.

        Raises:
            UnknownFunction: A required name is not in the catalog.
            BudgetExceeded: The required functions alone exceed the budget.
        """
        catalog = self._catalog
        required = sorted(set(request.required_names), key=catalog.position)
        required_cost = catalog.total_token_cost(required)

        if self._index is None or request.prompt_embedding is None:
            names = catalog.advertised_names()
            for name in required:
                if name not in names:
                    names.append(name)
            return SelectionResult(
                tuple(names), catalog.total_token_cost(names), filtered=False,
            )

        remaining = request.token_budget - required_cost
        if remaining < 0:
            raise BudgetExceeded(required_cost, request.token_budget)

        scores = self._index.similarities(request.prompt_embedding)
        candidates = [
            n for n in catalog.advertised_names() if n not in request.required_names
        ]
        # Unindexed candidates rank after every indexed one.
        ranked = sorted(
            candidates,
            key=lambda n: (
                n not in scores,
                -scores.get(n, 0.0),
                catalog.position(n),
            ),
        )

        accepted = []
        for name in ranked:
            cost = catalog.resolve(name).token_cost
            if cost > remaining:
                break
            accepted.append(name)
            remaining -= cost

        names = tuple(required) + tuple(accepted)
        total = request.token_budget - remaining
        _log.debug(
            "Selected %d of %d functions (%d/%d tokens)",
            len(names), len(catalog), total, request.token_budget,
        )
        return SelectionResult(names, total)
