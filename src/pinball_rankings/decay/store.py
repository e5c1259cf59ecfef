"""In-memory result store backed by a Polars DataFrame."""

from __future__ import annotations

import threading
from typing import Any

import polars as pl

from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.protocols import (
    DECAY_COLUMNS,
    PARTITION_COLUMNS,
    RESULT_COLUMNS,
)

_DECAY_SCHEMA = {
    "age_in_days": pl.Int64,
    "decay_multiplier": pl.Float64,
    "decayed_points": pl.Float64,
    "decay_as_of": pl.Datetime("us", "UTC"),
}


def partition_column(partition_by: str) -> str:
    """Key column for a partitioning mode.

    Raises:
        ValidationError: If the mode is not "player" or "tournament".
    """
    try:
        return PARTITION_COLUMNS[partition_by]
    except KeyError as exception:
        raise ValidationError(
            f"partition_by must be one of {sorted(PARTITION_COLUMNS)}, "
            f"got {partition_by!r}",
            field="partition_by",
        ) from exception


class FrameResultStore:
    """``ResultStore`` over a Polars DataFrame held in memory.

    Writes are serialized by a lock and replace every decay column of a row
    together.
    """

    def __init__(self, results: pl.DataFrame) -> None:
        missing = [c for c in RESULT_COLUMNS if c not in results.columns]
        if missing:
            raise ValidationError(
                f"Results are missing required columns: {missing}",
                field="results",
            )
        if results.get_column("result_id").is_duplicated().any():
            raise ValidationError(
                "result_id values must be unique", field="result_id"
            )
        self._lock = threading.Lock()
        self._frame = results.with_columns(
            [
                (
                    pl.col(name).cast(dtype)
                    if name in results.columns
                    else pl.lit(None, dtype=dtype).alias(name)
                )
                for name, dtype in _DECAY_SCHEMA.items()
            ]
        )

    @property
    def frame(self) -> pl.DataFrame:
        """Current snapshot of every stored result."""
        with self._lock:
            return self._frame.clone()

    def list_partitions(self, partition_by: str) -> list[Any]:
        column = partition_column(partition_by)
        with self._lock:
            keys = self._frame.get_column(column).drop_nulls().unique()
        return sorted(keys.to_list())

    def load_partition(self, partition_by: str, key: Any) -> pl.DataFrame:
        column = partition_column(partition_by)
        with self._lock:
            return self._frame.filter(pl.col(column) == key)

    def write_decay(self, updates: pl.DataFrame) -> int:
        columns = ["result_id", *DECAY_COLUMNS, "decay_as_of"]
        missing = [c for c in columns if c not in updates.columns]
        if missing:
            raise ValidationError(
                f"Decay updates are missing columns: {missing}", field="updates"
            )
        if updates.get_column("decay_as_of").null_count():
            raise ValidationError(
                "Decay updates need a decay_as_of for every row",
                field="decay_as_of",
            )
        updates = updates.select(columns).with_columns(
            [pl.col(name).cast(dtype) for name, dtype in _DECAY_SCHEMA.items()]
        )
        with self._lock:
            known = updates.join(
                self._frame.select("result_id"), on="result_id", how="semi"
            )
            replaced = (
                self._frame.with_row_index("_row")
                .join(known, on="result_id", how="left", suffix="_new")
                .sort("_row")
                .with_columns(
                    [
                        pl.when(pl.col("decay_as_of_new").is_not_null())
                        .then(pl.col(f"{name}_new"))
                        .otherwise(pl.col(name))
                        .alias(name)
                        for name in _DECAY_SCHEMA
                    ]
                )
                .drop(["_row", *(f"{name}_new" for name in _DECAY_SCHEMA)])
            )
            self._frame = replaced
        return known.height
