"""Dataset artifact definitions.

A dataset is the matrix of indicator values (plus the target label column
when computed for training) of one (model, analysable, time splitting)
combination. Rows are keyed by ``uniquesampleid`` ("<sampleid>-<rangeindex>").
Datasets are serialised as numpy ``.npz`` archives carrying the matrix, the
row keys, the column names and a JSON metadata header.
"""

from __future__ import annotations

import io
import json
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from learning_analytics.core.ports.file_store import FileStore, StoredFile

_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class DatasetMetadata(BaseModel):
    """Header stored next to every dataset matrix."""

    model_id: int = Field(..., ge=1)
    # None for datasets merged across analysables.
    analysable_id: int | None = None
    time_splitting: str = Field(..., min_length=1)
    evaluation: bool = False
    include_target: bool = False
    n_features: int = Field(..., ge=0)
    target_id: str | None = None
    target_type: Literal["discrete", "linear"] = "discrete"
    target_classes: list[float] = Field(default_factory=list)
    time_created: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True, slots=True)
class DatasetKey:
    """
    Composite identity of a dataset artifact.
    """

    model_id: int
    analysable_id: int | None
    time_splitting: str
    evaluation: bool
    include_target: bool

    @property
    def mode(self) -> str:
        if self.evaluation:
            return "evaluation"
        return "training" if self.include_target else "prediction"

    @property
    def prefix(self) -> str:
        analysable = "merged" if self.analysable_id is None else f"analysable_{self.analysable_id}"
        time_splitting = _UNSAFE_PATH_CHARS.sub("_", self.time_splitting)
        return f"model_{self.model_id}/{self.mode}/{time_splitting}/{analysable}"

    @property
    def lease_name(self) -> str:
        return self.prefix.replace("/", "__") + ".lease"


@dataclass(slots=True)
class DatasetMatrix:
    """In-memory dataset: ``rows[uniquesampleid] -> [feature..., (label)]``."""

    columns: list[str]
    rows: dict[str, list[float]]
    metadata: DatasetMetadata

    def __len__(self) -> int:
        return len(self.rows)

    def __bool__(self) -> bool:
        return bool(self.rows)

    @property
    def include_target(self) -> bool:
        return self.metadata.include_target

    @property
    def sample_ids(self) -> list[str]:
        return list(self.rows.keys())

    def values(self) -> np.ndarray:
        """Return the full matrix as a (n_rows, n_columns) float array."""
        return np.asarray(
            [self.rows[key] for key in self.rows],
            dtype=np.float64,
        ).reshape(len(self.rows), len(self.columns))

    def features(self) -> np.ndarray:
        return self.values()[:, : self.metadata.n_features]

    def labels(self) -> np.ndarray:
        if not self.include_target:
            raise ValueError("Dataset was calculated without target labels")
        return self.values()[:, self.metadata.n_features]

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        np.savez(
            buffer,
            sample_ids=np.asarray(self.sample_ids, dtype=np.str_),
            columns=np.asarray(self.columns, dtype=np.str_),
            values=self.values(),
            metadata=np.asarray(self.metadata.model_dump_json()),
        )
        return buffer.getvalue()

    @classmethod
    def from_bytes(cls, raw: bytes) -> DatasetMatrix:
        with np.load(io.BytesIO(raw), allow_pickle=False) as archive:
            sample_ids = [str(value) for value in archive["sample_ids"]]
            columns = [str(value) for value in archive["columns"]]
            values = archive["values"]
            metadata = DatasetMetadata.model_validate(json.loads(str(archive["metadata"])))

        rows = {
            sample_id: [float(value) for value in values[index]]
            for index, sample_id in enumerate(sample_ids)
        }
        return cls(columns=columns, rows=rows, metadata=metadata)


@dataclass(frozen=True, slots=True)
class StoredDataset:
    """Handle to a persisted dataset artifact."""

    key: DatasetKey
    file: StoredFile
    _file_store: FileStore = field(repr=False, compare=False)

    @property
    def id(self) -> str:
        return self.file.file_id

    @property
    def time_created(self) -> int:
        return self.file.time_created

    def get_content(self) -> DatasetMatrix:
        return DatasetMatrix.from_bytes(self._file_store.get(self.file.file_id))
