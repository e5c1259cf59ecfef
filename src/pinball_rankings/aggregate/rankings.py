"""
Rank list and rating list.

The rank list orders eligible players by the sum of their decayed points;
the rating list orders rated players by rating. Both are recomputed from
scratch on every call and depend only on their inputs.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Iterable, Sequence

import polars as pl

from pinball_rankings.core.config import EngineConfig
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.logging import get_logger
from pinball_rankings.core.models import PlayerStanding, PlayerState
from pinball_rankings.core.results import RankingOrder
from pinball_rankings.core.time import to_datetime

logger = get_logger(__name__)

_MISSING_DATE = float("-inf")


def is_rank_eligible(
    player: PlayerStanding, config: EngineConfig | None = None
) -> bool:
    """Whether a player qualifies for the rank list.

    Players need ``min_events_for_ranking`` counted events; when the count is
    unknown the rated flag decides.
    """
    config = config or EngineConfig()
    if player.event_count is None:
        return player.is_rated
    return player.event_count >= config.ranking.min_events_for_ranking


def _last_event_key(value: datetime | None) -> float:
    if value is None:
        return _MISSING_DATE
    return to_datetime(value).timestamp()


def _id_key(player_id) -> tuple:
    return (type(player_id).__name__, player_id)


def recompute_rankings(
    players: Iterable[PlayerStanding],
    *,
    config: EngineConfig | None = None,
) -> RankingOrder:
    """Build the rank list and the rating list.

    Rank list: eligible players by decayed points (desc), then most recent
    event (missing dates last), then player id. Rating list: rated players by
    rating (desc), then player id.

    Args:
        players: One aggregate per player.
        config: Engine configuration.

    Returns:
        RankingOrder with both orderings and each player's 1-based rank
        (None when not eligible).

    Raises:
        ValidationError: On duplicate player ids.
    """
    config = (config or EngineConfig()).validate()
    players = list(players)
    seen = set()
    for player in players:
        if player.player_id in seen:
            raise ValidationError(
                f"Duplicate player ID: {player.player_id!r}", field="player_id"
            )
        seen.add(player.player_id)

    # Stable sorts from least to most significant key
    eligible = [p for p in players if is_rank_eligible(p, config)]
    eligible.sort(key=lambda p: _id_key(p.player_id))
    eligible.sort(key=lambda p: _last_event_key(p.last_event_date), reverse=True)
    eligible.sort(key=lambda p: p.decayed_points_sum, reverse=True)
    rank_order = [p.player_id for p in eligible]

    rated = [p for p in players if p.is_rated]
    rated.sort(key=lambda p: _id_key(p.player_id))
    rated.sort(key=lambda p: p.rating, reverse=True)
    rating_order = [p.player_id for p in rated]

    rankings = {p.player_id: None for p in players}
    rankings.update(
        {player_id: index + 1 for index, player_id in enumerate(rank_order)}
    )

    logger.info(
        "Recomputed rankings: %d ranked, %d rated, %d players",
        len(rank_order),
        len(rating_order),
        len(players),
    )
    return RankingOrder(
        rank_order=rank_order, rating_order=rating_order, rankings=rankings
    )


def aggregate_player_points(
    results: pl.DataFrame,
    *,
    top_n: int | None = None,
    config: EngineConfig | None = None,
) -> pl.DataFrame:
    """Sum each player's best decayed results.

    Args:
        results: DataFrame with ``player_id``, ``decayed_points`` and
            ``tournament_date`` columns.
        top_n: Results counted per player. Defaults to the configured
            ``top_events_count`` (15).
        config: Engine configuration.

    Returns:
        DataFrame with ``player_id``, ``decayed_points_sum``, ``event_count``
        and ``last_event_date``, sorted by player id. ``event_count`` only
        counts results with a positive ``decay_multiplier`` that are not
        ``opted_out`` (when those columns are present).
    """
    config = config or EngineConfig()
    top_n = config.ranking.top_events_count if top_n is None else top_n
    if top_n < 1:
        raise ValidationError("top_n must be at least 1", field="top_n")
    required = ("player_id", "decayed_points", "tournament_date")
    missing = [c for c in required if c not in results.columns]
    if missing:
        raise ValidationError(
            f"Results are missing required columns: {missing}", field="results"
        )

    # Only results still inside the decay window count as activity
    counted = pl.lit(True)
    if "decay_multiplier" in results.columns:
        counted = counted & (pl.col("decay_multiplier").fill_null(0.0) > 0)
    if "opted_out" in results.columns:
        counted = counted & ~pl.col("opted_out").fill_null(False)

    return (
        results.lazy()
        .with_columns(
            pl.col("decayed_points").fill_null(0.0),
            counted.alias("_counted"),
        )
        .group_by("player_id")
        .agg(
            pl.col("decayed_points")
            .sort(descending=True)
            .head(top_n)
            .sum()
            .alias("decayed_points_sum"),
            pl.col("_counted").sum().cast(pl.Int64).alias("event_count"),
            pl.col("tournament_date").max().alias("last_event_date"),
        )
        .sort("player_id")
        .collect()
    )


def standings_from_frame(
    points: pl.DataFrame, players: pl.DataFrame
) -> list[PlayerStanding]:
    """Join per-player point totals with rating state into standings.

    Args:
        points: Output of ``aggregate_player_points``.
        players: DataFrame with ``player_id``, ``rating`` and ``is_rated``;
            an ``event_count`` column, when present, takes precedence over
            the count of results.

    Returns:
        One PlayerStanding per player in ``players``.
    """
    required = ("player_id", "rating", "is_rated")
    missing = [c for c in required if c not in players.columns]
    if missing:
        raise ValidationError(
            f"Players are missing required columns: {missing}", field="players"
        )
    joined = players.join(
        points, on="player_id", how="left", suffix="_results"
    ).with_columns(pl.col("decayed_points_sum").fill_null(0.0))
    if "event_count_results" in joined.columns:
        joined = joined.with_columns(
            pl.coalesce("event_count", "event_count_results").alias("event_count")
        )

    return [
        PlayerStanding(
            player_id=row["player_id"],
            decayed_points_sum=float(row["decayed_points_sum"]),
            rating=float(row["rating"]),
            is_rated=bool(row["is_rated"]),
            event_count=row.get("event_count"),
            last_event_date=row.get("last_event_date"),
        )
        for row in joined.iter_rows(named=True)
    ]


def apply_rankings(
    players: Sequence[PlayerState], order: RankingOrder
) -> list[PlayerState]:
    """New player snapshots with ``ranking`` set from a RankingOrder."""
    return [
        dataclasses.replace(player, ranking=order.ranking_of(player.player_id))
        for player in players
    ]
