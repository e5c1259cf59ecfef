"""Tournament valuation and point distribution."""

from pinball_rankings.scoring.distribution import (
    awards_to_dataframe,
    distribute_points,
    dynamic_points,
    linear_points,
    points_for_position,
    position_percentage,
)
from pinball_rankings.scoring.efficiency import (
    PlayerEvent,
    decayed_efficiency,
    efficiency_stats,
    efficiency_trend,
    overall_efficiency,
    top_n_efficiency,
)
from pinball_rankings.scoring.value import (
    RankingSummary,
    RatingSummary,
    base_value,
    booster_multiplier,
    compute_field_value,
    compute_tournament_value,
    parse_event_booster,
    ranking_tva,
    rating_tva,
    summarize_field,
)

__all__ = [
    # Value
    "RankingSummary",
    "RatingSummary",
    "base_value",
    "booster_multiplier",
    "compute_field_value",
    "compute_tournament_value",
    "parse_event_booster",
    "ranking_tva",
    "rating_tva",
    "summarize_field",
    # Distribution
    "awards_to_dataframe",
    "distribute_points",
    "dynamic_points",
    "linear_points",
    "points_for_position",
    "position_percentage",
    # Efficiency
    "PlayerEvent",
    "decayed_efficiency",
    "efficiency_stats",
    "efficiency_trend",
    "overall_efficiency",
    "top_n_efficiency",
]
