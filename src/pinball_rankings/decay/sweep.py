"""
Bulk decay sweep over a result store.

The sweep splits the stored results into partitions (by player or by
tournament), computes every result of a partition and only then writes the
decay fields back. A partition that fails is retried as a whole, so no
partition is ever left half-written by the sweep itself. Invalid results
(``RankingError``) fail their partition at once; only other errors, such as
store I/O, are retried.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import polars as pl

from pinball_rankings.core.config import EngineConfig
from pinball_rankings.core.exceptions import (
    RankingError,
    SweepError,
    ValidationError,
)
from pinball_rankings.core.logging import ProgressLogger, get_logger
from pinball_rankings.core.protocols import DECAY_COLUMNS, ResultStore
from pinball_rankings.core.results import SweepReport
from pinball_rankings.core.time import Timestamp, to_datetime
from pinball_rankings.decay.curve import DecayCurve, curve_from_config
from pinball_rankings.decay.engine import decay_frame
from pinball_rankings.decay.store import partition_column

logger = get_logger(__name__)

_SKIPPED = -1


class DecaySweep:
    """Recompute decay fields for every stored result as of a date.

    Args:
        store: Result storage implementing ``ResultStore``.
        config: Engine configuration; selects the decay curve.
        workers: Worker threads processing partitions.
        partition_by: "player" or "tournament".
        max_attempts: Attempts per partition before it is reported failed.
        only_stale: Skip rows whose stored ``decay_as_of`` already matches.

    Examples:
        >>> store = FrameResultStore(results)
        >>> report = DecaySweep(store, workers=4).run("2025-01-01")
        >>> report.succeeded
        True
    """

    def __init__(
        self,
        store: ResultStore,
        config: EngineConfig | None = None,
        *,
        workers: int = 4,
        partition_by: str = "player",
        max_attempts: int = 3,
        only_stale: bool = False,
        curve: DecayCurve | None = None,
    ) -> None:
        if workers < 1:
            raise ValidationError("workers must be at least 1", field="workers")
        if max_attempts < 1:
            raise ValidationError(
                "max_attempts must be at least 1", field="max_attempts"
            )
        partition_column(partition_by)

        self.store = store
        self.config = (config or EngineConfig()).validate()
        self.workers = workers
        self.partition_by = partition_by
        self.max_attempts = max_attempts
        self.only_stale = only_stale
        self.curve = curve or curve_from_config(self.config.decay)

        self._cancel_event = threading.Event()
        self._report_lock = threading.Lock()

    def cancel(self) -> None:
        """Stop starting new partitions; partitions already running finish."""
        if not self._cancel_event.is_set():
            logger.info("Decay sweep cancellation requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def compute_partition(
        self, partition: pl.DataFrame, as_of: Timestamp
    ) -> pl.DataFrame:
        """Decay fields for one loaded partition, ready for ``write_decay``."""
        as_of = to_datetime(as_of)
        if self.only_stale and "decay_as_of" in partition.columns:
            partition = partition.filter(
                pl.col("decay_as_of").is_null()
                | (pl.col("decay_as_of") != pl.lit(as_of))
            )
        if partition.is_empty():
            return pl.DataFrame(
                schema={
                    "result_id": pl.Int64,
                    "age_in_days": pl.Int64,
                    "decay_multiplier": pl.Float64,
                    "decayed_points": pl.Float64,
                    "decay_as_of": pl.Datetime("us", "UTC"),
                }
            )
        decayed = decay_frame(partition, as_of, curve=self.curve)
        return decayed.select(
            "result_id",
            *DECAY_COLUMNS,
            pl.lit(as_of).cast(pl.Datetime("us", "UTC")).alias("decay_as_of"),
        )

    def _process_partition(
        self, key: Any, as_of: Timestamp, report: SweepReport
    ) -> int:
        if self._cancel_event.is_set():
            return _SKIPPED

        for attempt in range(1, self.max_attempts + 1):
            try:
                partition = self.store.load_partition(self.partition_by, key)
                updates = self.compute_partition(partition, as_of)
                if updates.is_empty():
                    return 0
                return self.store.write_decay(updates)
            except RankingError as exception:
                logger.error(
                    "Partition %s=%r has invalid results, not retrying: %s",
                    self.partition_by,
                    key,
                    exception,
                )
                raise
            except Exception as exception:
                if attempt == self.max_attempts:
                    logger.error(
                        "Partition %s=%r failed after %d attempts: %s",
                        self.partition_by,
                        key,
                        attempt,
                        exception,
                    )
                    raise
                with self._report_lock:
                    report.retries += 1
                logger.warning(
                    "Partition %s=%r failed on attempt %d/%d, retrying: %s",
                    self.partition_by,
                    key,
                    attempt,
                    self.max_attempts,
                    exception,
                )
        return 0

    def run(self, as_of: Timestamp, *, strict: bool = False) -> SweepReport:
        """Run the sweep.

        Args:
            as_of: Evaluation date for every result.
            strict: Raise ``SweepError`` if any partition still fails after
                its retries.

        Returns:
            SweepReport with counts, retries and failed partition keys.
        """
        as_of = to_datetime(as_of)
        start_time = time.perf_counter()
        keys = self.store.list_partitions(self.partition_by)
        report = SweepReport(
            as_of=as_of,
            partition_by=self.partition_by,
            partitions_total=len(keys),
        )

        with ProgressLogger(
            logger, f"decay sweep by {self.partition_by}", total=len(keys)
        ) as progress:
            with ThreadPoolExecutor(
                max_workers=min(self.workers, max(1, len(keys)))
            ) as executor:
                futures = {
                    executor.submit(
                        self._process_partition, key, as_of, report
                    ): key
                    for key in keys
                }
                failed = set()
                finished = 0
                for future in as_completed(futures):
                    key = futures[future]
                    finished += 1
                    try:
                        rows = future.result()
                    except Exception:
                        failed.add(key)
                        continue
                    if rows == _SKIPPED:
                        continue
                    report.partitions_done += 1
                    report.rows_updated += rows
                    progress.update(finished)

        report.failed_partitions = [key for key in keys if key in failed]
        report.cancelled = (
            self._cancel_event.is_set()
            and report.partitions_done + len(failed) < len(keys)
        )
        report.computation_time = time.perf_counter() - start_time
        logger.info("%s", report)

        if strict and report.failed_partitions:
            raise SweepError(report.failed_partitions)
        return report
