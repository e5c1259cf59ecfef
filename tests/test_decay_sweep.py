"""Tests for the partitioned decay sweep and the in-memory result store."""

from datetime import date, datetime, timezone

import polars as pl
import pytest

from pinball_rankings.core.exceptions import SweepError, ValidationError
from pinball_rankings.core.models import ResultRecord
from pinball_rankings.core.protocols import ResultStore
from pinball_rankings.decay import DecaySweep, FrameResultStore, apply_decay

AS_OF = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _results() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "result_id": [1, 2, 3, 4, 5, 6],
            "player_id": [10, 10, 20, 20, 30, 30],
            "tournament_id": [100, 101, 100, 102, 101, 102],
            "total_points": [50.0, 30.0, 40.0, 20.0, 10.0, 60.0],
            "tournament_date": [
                date(2024, 10, 1),
                date(2023, 10, 1),
                date(2024, 10, 1),
                date(2021, 5, 1),
                date(2023, 10, 1),
                date(2021, 5, 1),
            ],
        }
    )


class FlakyStore:
    """Wraps a store and fails writes for chosen partitions."""

    def __init__(self, inner, failures_by_key):
        self.inner = inner
        self.failures_by_key = dict(failures_by_key)
        self.partition_by = None

    def list_partitions(self, partition_by):
        return self.inner.list_partitions(partition_by)

    def load_partition(self, partition_by, key):
        self.partition_by = partition_by
        return self.inner.load_partition(partition_by, key)

    def write_decay(self, updates):
        column = "player_id" if self.partition_by == "player" else "tournament_id"
        frame = self.inner.frame.filter(
            pl.col("result_id").is_in(updates["result_id"].to_list())
        )
        key = frame[column][0]
        remaining = self.failures_by_key.get(key, 0)
        if remaining:
            self.failures_by_key[key] = remaining - 1
            raise IOError(f"write failed for {key}")
        return self.inner.write_decay(updates)


class TestFrameResultStore:
    def test_satisfies_protocol(self):
        assert isinstance(FrameResultStore(_results()), ResultStore)

    def test_partitions(self):
        store = FrameResultStore(_results())
        assert store.list_partitions("player") == [10, 20, 30]
        assert store.list_partitions("tournament") == [100, 101, 102]
        assert store.load_partition("player", 20)["result_id"].to_list() == [3, 4]

    def test_unknown_partitioning(self):
        with pytest.raises(ValidationError):
            FrameResultStore(_results()).list_partitions("region")

    def test_missing_columns(self):
        with pytest.raises(ValidationError):
            FrameResultStore(_results().drop("tournament_date"))

    def test_duplicate_result_ids(self):
        frame = _results().with_columns(pl.lit(1).alias("result_id"))
        with pytest.raises(ValidationError):
            FrameResultStore(frame)

    def test_write_requires_all_decay_columns(self):
        store = FrameResultStore(_results())
        with pytest.raises(ValidationError):
            store.write_decay(
                pl.DataFrame({"result_id": [1], "decayed_points": [1.0]})
            )


class TestDecaySweep:
    """Test the bulk sweep."""

    @pytest.mark.parametrize("partition_by", ["player", "tournament"])
    def test_sweep_matches_single_result_decay(self, partition_by):
        store = FrameResultStore(_results())
        report = DecaySweep(store, workers=3, partition_by=partition_by).run(AS_OF)

        assert report.succeeded
        assert report.partitions_done == 3
        assert report.rows_updated == 6

        for row in store.frame.iter_rows(named=True):
            expected = apply_decay(
                ResultRecord(row["total_points"], row["tournament_date"]), AS_OF
            )
            assert row["age_in_days"] == expected.age_in_days
            assert row["decay_multiplier"] == pytest.approx(expected.decay_multiplier)
            assert row["decayed_points"] == pytest.approx(expected.decayed_points)
            assert row["decay_as_of"] == AS_OF

    def test_idempotent(self):
        store = FrameResultStore(_results())
        sweep = DecaySweep(store, workers=2)
        sweep.run(AS_OF)
        first = store.frame
        sweep.run(AS_OF)
        assert store.frame.equals(first)

    def test_only_stale_skips_current_rows(self):
        store = FrameResultStore(_results())
        DecaySweep(store).run(AS_OF)
        report = DecaySweep(store, only_stale=True).run(AS_OF)
        assert report.rows_updated == 0
        report = DecaySweep(store, only_stale=True).run("2025-06-01")
        assert report.rows_updated == 6

    def test_transient_failure_retried(self):
        store = FlakyStore(FrameResultStore(_results()), {20: 1})
        report = DecaySweep(store, workers=2, max_attempts=3).run(AS_OF)
        assert report.succeeded
        assert report.retries == 1
        assert report.rows_updated == 6

    def test_persistent_failure_reported(self):
        inner = FrameResultStore(_results())
        store = FlakyStore(inner, {20: 99})
        report = DecaySweep(store, workers=2, max_attempts=2).run(AS_OF)

        assert not report.succeeded
        assert report.failed_partitions == [20]
        assert report.rows_updated == 4
        failed_rows = inner.frame.filter(pl.col("player_id") == 20)
        assert failed_rows["decayed_points"].null_count() == 2

    def test_invalid_results_not_retried(self):
        frame = _results().with_columns(
            pl.when(pl.col("player_id") == 30)
            .then(-5.0)
            .otherwise(pl.col("total_points"))
            .alias("total_points")
        )
        report = DecaySweep(FrameResultStore(frame), max_attempts=3).run(AS_OF)

        assert report.retries == 0
        assert report.failed_partitions == [30]
        assert report.rows_updated == 4

    def test_strict_raises(self):
        store = FlakyStore(FrameResultStore(_results()), {30: 99})
        with pytest.raises(SweepError) as excinfo:
            DecaySweep(store, max_attempts=1).run(AS_OF, strict=True)
        assert excinfo.value.failed_partitions == [30]

    def test_cancel_stops_new_partitions(self):
        inner = FrameResultStore(_results())

        class CancellingStore(FlakyStore):
            def load_partition(self, partition_by, key):
                sweep.cancel()
                return super().load_partition(partition_by, key)

        sweep = DecaySweep(CancellingStore(inner, {}), workers=1)
        report = sweep.run(AS_OF)

        assert report.cancelled
        assert report.partitions_done == 1
        assert inner.frame["decayed_points"].null_count() == 4

    def test_invalid_arguments(self):
        store = FrameResultStore(_results())
        with pytest.raises(ValidationError):
            DecaySweep(store, workers=0)
        with pytest.raises(ValidationError):
            DecaySweep(store, partition_by="region")
