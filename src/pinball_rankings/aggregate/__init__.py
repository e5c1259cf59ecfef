"""Rank list and rating list aggregation."""

from pinball_rankings.aggregate.rankings import (
    aggregate_player_points,
    apply_rankings,
    is_rank_eligible,
    recompute_rankings,
    standings_from_frame,
)

__all__ = [
    "aggregate_player_points",
    "apply_rankings",
    "is_rank_eligible",
    "recompute_rankings",
    "standings_from_frame",
]
