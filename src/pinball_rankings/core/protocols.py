"""Protocol definitions for the storage collaborator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import polars as pl

if TYPE_CHECKING:
    from typing import Any

# Columns a store must provide when loading a partition
RESULT_COLUMNS = (
    "result_id",
    "player_id",
    "tournament_id",
    "total_points",
    "tournament_date",
)

# Columns written back by the decay sweep, always as one unit
DECAY_COLUMNS = ("age_in_days", "decay_multiplier", "decayed_points")

# Partition key column for each supported partitioning
PARTITION_COLUMNS = {"player": "player_id", "tournament": "tournament_id"}


@runtime_checkable
class ResultStore(Protocol):
    """Protocol for result storage used by the bulk decay sweep.

    Implementations own transactions and retries of their own I/O; the sweep
    only reads a partition, computes, and hands the decay fields back.
    """

    def list_partitions(self, partition_by: str) -> list[Any]:
        """List partition keys.

        Args:
            partition_by: "player" or "tournament".

        Returns:
            Keys of the partitions that hold at least one result.
        """
        ...

    def load_partition(self, partition_by: str, key: Any) -> pl.DataFrame:
        """Load every result of one partition.

        Returns:
            DataFrame with at least the ``RESULT_COLUMNS`` columns, plus
            ``decay_as_of`` when the store tracks the last sweep time.
        """
        ...

    def write_decay(self, updates: pl.DataFrame) -> int:
        """Persist decay fields for the given results.

        Args:
            updates: DataFrame with ``result_id``, ``DECAY_COLUMNS`` and
                ``decay_as_of``. Every listed column of a row is written
                together or not at all.

        Returns:
            Number of rows written.
        """
        ...
