"""Persisted function-name -> embedding table.

The archive is a single ``.npy`` file holding a structured array with
``name``, ``description`` and ``embedding`` fields. It is opened with a
read-only memory map, so ranking a prompt never deserializes the table.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

import numpy as np

from ..errors import DuplicateName, IndexCorrupt, IndexUnavailable

if TYPE_CHECKING:
    from ..providers.base import Embedder
    from ..tools.catalog import Catalog

_log = logging.getLogger(__name__)

NAME_WIDTH = 64
DESCRIPTION_WIDTH = 1024
_FIELDS = ("name", "description", "embedding")


@dataclass(frozen=True)
class EmbeddingRecord:
    name: str
    vector: tuple[float, ...]
    description: str = ""


def _dtype(dimension: int) -> np.dtype:
    return np.dtype([
        ("name", f"<U{NAME_WIDTH}"),
        ("description", f"<U{DESCRIPTION_WIDTH}"),
        ("embedding", "<f4", (dimension,)),
    ])


def cosine_similarities(matrix: np.ndarray, vector: Sequence[float]) -> np.ndarray:
    """Cosine similarity of every row of ``matrix`` against ``vector``.

    Rows or vectors with zero magnitude score 0.0.
    """
    query = np.asarray(vector, dtype=np.float32)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        raise ValueError(
            f"Prompt embedding has {query.shape[0]} dimensions, "
            f"index has {matrix.shape[1] if matrix.ndim == 2 else 0}"
        )
    dots = matrix @ query
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    scores = np.zeros(len(matrix), dtype=np.float32)
    np.divide(dots, norms, out=scores, where=norms != 0)
    return scores


class RelevanceIndex:
    """Read-only view over an embedding archive."""

    def __init__(self, table: np.ndarray, path: Optional[Path] = None):
        self._table = table
        self.path = path
        self._names = [str(n) for n in table["name"]]
        self._rows = {name: i for i, name in enumerate(self._names)}

    @classmethod
    def open(cls, path: Union[str, Path]) -> "RelevanceIndex":
        """Memory-map and validate the archive at ``path``.

        Raises:
            IndexUnavailable: The file does not exist.
            IndexCorrupt: The file is not a valid embedding archive.
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise IndexUnavailable(str(path))
        try:
            table = np.load(path, mmap_mode="r", allow_pickle=False)
        except (OSError, ValueError) as e:
            raise IndexCorrupt(str(path), f"unreadable archive: {e}") from e
        _validate(table, path)
        return cls(table, path)

    @property
    def dimension(self) -> int:
        return int(self._table.dtype["embedding"].shape[0])

    def names(self) -> list[str]:
        return list(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._rows

    def similarities(self, vector: Sequence[float]) -> dict[str, float]:
        """Cosine similarity of every stored function against ``vector``."""
        if not self._names:
            return {}
        scores = cosine_similarities(self._table["embedding"], vector)
        return {name: float(score) for name, score in zip(self._names, scores)}

    def rank(self, vector: Sequence[float]) -> list[str]:
        """Stored names, most similar first. Ties keep archive order."""
        scores = self.similarities(vector)
        return sorted(self._names, key=lambda n: -scores[n])


def _validate(table: np.ndarray, path: Path) -> None:
    names = table.dtype.names or ()
    if any(f not in names for f in _FIELDS):
        raise IndexCorrupt(str(path), f"expected fields {_FIELDS}, got {names}")
    if table.ndim != 1:
        raise IndexCorrupt(str(path), "archive must be one-dimensional")
    embedding = table.dtype["embedding"]
    if embedding.base != np.dtype("<f4") or len(embedding.shape) != 1:
        raise IndexCorrupt(str(path), "embedding must be a float32 vector")
    stored = [str(n) for n in table["name"]]
    if len(set(stored)) != len(stored):
        raise IndexCorrupt(str(path), "duplicate function names")


def _to_table(records: Sequence[EmbeddingRecord], dimension: int) -> np.ndarray:
    table = np.zeros(len(records), dtype=_dtype(dimension))
    for i, record in enumerate(records):
        if len(record.vector) != dimension:
            raise ValueError(
                f"Embedding for {record.name} has {len(record.vector)} "
                f"dimensions, expected {dimension}"
            )
        if len(record.name) > NAME_WIDTH:
            raise ValueError(f"Function name longer than {NAME_WIDTH}: {record.name}")
        table["name"][i] = record.name
        table["description"][i] = record.description[:DESCRIPTION_WIDTH]
        table["embedding"][i] = record.vector
    return table


def write_index(path: Union[str, Path], records: Sequence[EmbeddingRecord]) -> Path:
    """Write ``records`` as a fresh archive, replacing the file atomically."""
    if not records:
        raise ValueError("Cannot write an empty embedding archive")
    path = Path(path).expanduser()
    seen = set()
    for record in records:
        if record.name in seen:
            raise DuplicateName(record.name)
        seen.add(record.name)

    table = _to_table(records, len(records[0].vector))
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".npy")
    try:
        with os.fdopen(fd, "wb") as f:
            np.save(f, table, allow_pickle=False)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return path


def load_records(path: Union[str, Path]) -> list[EmbeddingRecord]:
    index = RelevanceIndex.open(path)
    table = index._table
    return [
        EmbeddingRecord(
            name=str(row["name"]),
            vector=tuple(float(x) for x in row["embedding"]),
            description=str(row["description"]),
        )
        for row in table
    ]


def append_records(
    path: Union[str, Path], records: Iterable[EmbeddingRecord],
) -> Path:
    """Append to an archive. Stored names may not be redefined."""
    path = Path(path).expanduser()
    existing = load_records(path) if path.is_file() else []
    stored = {r.name for r in existing}
    new = list(records)
    for record in new:
        if record.name in stored:
            raise DuplicateName(record.name)
        stored.add(record.name)
    return write_index(path, existing + new)


async def build_index(
    catalog: "Catalog",
    embedder: "Embedder",
    path: Union[str, Path],
) -> list[str]:
    """Embed every advertised catalog function missing from the archive.

    Returns:
        Names that were added.
    """
    path = Path(path).expanduser()
    stored = set()
    if path.is_file():
        stored = set(RelevanceIndex.open(path).names())

    records = []
    for descriptor in catalog:
        if not descriptor.advertised or descriptor.name in stored:
            continue
        vector = await embedder.embed(f"{descriptor.name}: {descriptor.description}")
        records.append(
            EmbeddingRecord(descriptor.name, tuple(vector), descriptor.description)
        )

    if records:
        append_records(path, records)
        _log.info("Added %d embedding(s) to %s", len(records), path)
    return [r.name for r in records]
