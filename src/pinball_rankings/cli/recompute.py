from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

import polars as pl

from pinball_rankings import __version__
from pinball_rankings.aggregate.rankings import (
    aggregate_player_points,
    recompute_rankings,
    standings_from_frame,
)
from pinball_rankings.core.config import load_config
from pinball_rankings.core.exceptions import RankingError
from pinball_rankings.core.logging import log_timing, setup_logging
from pinball_rankings.core.sentry import init_sentry
from pinball_rankings.core.time import to_datetime
from pinball_rankings.decay.store import FrameResultStore
from pinball_rankings.decay.sweep import DecaySweep

log = logging.getLogger("pinball_rankings.cli.recompute")


def _get_build_version() -> str:
    """Return build version from env, defaulting to the package version."""
    return os.getenv("PINBALL_RANKINGS_BUILD") or __version__


def _read_table(path: Path) -> pl.DataFrame:
    """Read a CSV or Parquet file into a DataFrame."""
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.suffix.lower() in {".parquet", ".pq"}:
        return pl.read_parquet(path)
    return pl.read_csv(path, try_parse_dates=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Decay stored tournament results as of a date and recompute the "
            "rank and rating lists."
        )
    )
    parser.add_argument(
        "--results",
        type=Path,
        required=True,
        help=(
            "CSV/Parquet of results: result_id, player_id, tournament_id, "
            "total_points, tournament_date"
        ),
    )
    parser.add_argument(
        "--players",
        type=Path,
        required=True,
        help="CSV/Parquet of players: player_id, rating, is_rated[, event_count]",
    )
    parser.add_argument(
        "--as-of",
        type=str,
        required=True,
        help="Evaluation date (ISO 8601, e.g. 2025-01-01)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Directory for results_decayed.parquet and rankings.parquet",
    )
    parser.add_argument(
        "--workers", type=int, default=4, help="Decay sweep worker threads"
    )
    parser.add_argument(
        "--partition-by",
        choices=["player", "tournament"],
        default="player",
        help="Unit of work for the decay sweep",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with engine configuration overrides",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("PINBALL_RANKINGS_LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    fmt = os.getenv("PINBALL_RANKINGS_LOG_FORMAT", "detailed")
    setup_logging(level=args.log_level, format_style=fmt)
    init_sentry(context="rankings_recompute", release=_get_build_version())

    try:
        config = load_config(args.config)
        as_of = to_datetime(args.as_of)
        results = _read_table(args.results)
        players = _read_table(args.players)
        if "result_id" not in results.columns:
            results = results.with_row_index("result_id")
        store = FrameResultStore(results)
        sweep = DecaySweep(
            store,
            config,
            workers=args.workers,
            partition_by=args.partition_by,
        )
    except (OSError, RankingError, pl.exceptions.PolarsError) as exception:
        log.error("Could not load inputs: %s", exception)
        return 2

    with log_timing(log, f"decay sweep as of {as_of.date().isoformat()}"):
        report = sweep.run(as_of)
    if not report.succeeded:
        log.error(
            "Decay sweep incomplete; failed partitions: %s",
            report.failed_partitions[:25],
        )
        return 1

    decayed = store.frame
    try:
        points = aggregate_player_points(decayed, config=config)
        standings = standings_from_frame(points, players)
        order = recompute_rankings(standings, config=config)
    except (RankingError, pl.exceptions.PolarsError) as exception:
        log.error("Invalid player inputs: %s", exception)
        return 2

    rankings = (
        order.to_dataframe()
        .join(points, on="player_id", how="left")
        .join(
            players.select("player_id", "rating", "is_rated"),
            on="player_id",
            how="left",
        )
        .sort(["ranking", "player_id"], nulls_last=True)
    )

    args.output.mkdir(parents=True, exist_ok=True)
    decayed.write_parquet(args.output / "results_decayed.parquet")
    rankings.write_parquet(args.output / "rankings.parquet")

    log.info(
        "Run complete: %d results, %d ranked players. Outputs: %s",
        decayed.height,
        len(order.rank_order),
        args.output,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
