"""
Point distribution across finishing positions.

Each finisher's award is the sum of two parts:

- a linear part (10% of First-Place Value) that rewards every place gained
  equally across the whole field, and
- a dynamic part (90%) on a steep curve stretched over the top half of the
  rated field (at most 64 places), rewarding podium finishes
  disproportionately.
"""

from __future__ import annotations

from collections import Counter
from numbers import Integral
from typing import Iterable, Sequence

import polars as pl

from pinball_rankings.core.config import DistributionConfig, EngineConfig
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.logging import get_logger
from pinball_rankings.core.models import Entrant
from pinball_rankings.core.results import PointAward

logger = get_logger(__name__)


def dynamic_cap(
    rated_player_count: int, config: DistributionConfig | None = None
) -> float:
    """Number of places the dynamic curve stretches over.

    Half the rated field, capped at 64 and never below one place so that
    the winner always collects the dynamic share.
    """
    config = config or DistributionConfig()
    return max(min(rated_player_count / 2, config.max_dynamic_players), 1)


def linear_points(
    position: int,
    player_count: int,
    first_place_value: float,
    config: DistributionConfig | None = None,
) -> float:
    """(N + 1 - position) * 10% * (FPV / N)."""
    config = config or DistributionConfig()
    if player_count <= 0:
        return 0.0
    return (
        (player_count + 1 - position)
        * config.linear_share
        * (first_place_value / player_count)
    )


def dynamic_points(
    position: int,
    rated_player_count: int,
    first_place_value: float,
    config: DistributionConfig | None = None,
) -> float:
    """(1 - ((position - 1) / cap) ** 0.7) ** 3 * 90% * FPV inside the cap, else 0."""
    config = config or DistributionConfig()
    cap = dynamic_cap(rated_player_count, config)
    if position - 1 >= cap:
        return 0.0
    position_ratio = (position - 1) / cap
    decay_factor = (
        1 - position_ratio**config.position_exponent
    ) ** config.value_exponent
    return decay_factor * config.dynamic_share * first_place_value


def points_for_position(
    position: int,
    player_count: int,
    rated_player_count: int,
    first_place_value: float,
    config: DistributionConfig | None = None,
) -> float:
    """Total points awarded to a scoring position."""
    config = config or DistributionConfig()
    if position == 1:
        return float(first_place_value)
    return linear_points(
        position, player_count, first_place_value, config
    ) + dynamic_points(position, rated_player_count, first_place_value, config)


def position_percentage(
    position: int,
    player_count: int,
    rated_player_count: int,
    config: DistributionConfig | None = None,
) -> float:
    """Share of First-Place Value a position receives (0.0 to 1.0)."""
    return (
        points_for_position(
            position, player_count, rated_player_count, 100.0, config
        )
        / 100.0
    )


def efficiency(total_points: float, first_place_value: float) -> float:
    """Points earned as a percentage of First-Place Value."""
    if first_place_value == 0:
        return 0.0
    return total_points / first_place_value * 100.0


def validate_positions(entrants: Sequence[Entrant]) -> None:
    """Validate a standings list.

    Positions follow standard competition ranking: a tie group of ``k``
    entrants at position ``p`` is followed by position ``p + k``.

    Raises:
        ValidationError: On empty input, duplicate players, positions below 1
            or above the entrant count, or gaps in the sequence.
    """
    if not entrants:
        raise ValidationError("Entrant list cannot be empty", field="entrants")

    entrant_count = len(entrants)
    duplicates = [
        player_id
        for player_id, count in Counter(e.player_id for e in entrants).items()
        if count > 1
    ]
    if duplicates:
        raise ValidationError(
            f"Duplicate player IDs found: {duplicates}", field="player_id"
        )

    for entrant in entrants:
        position = entrant.position
        if isinstance(position, bool) or not isinstance(position, Integral):
            raise ValidationError(
                f"Player {entrant.player_id!r} has non-integer position {position!r}",
                field="position",
            )
        if position < 1 or position > entrant_count:
            raise ValidationError(
                f"Player {entrant.player_id!r} has position {position} outside "
                f"1..{entrant_count}",
                field="position",
            )

    expected = 1
    for position, group_size in sorted(Counter(e.position for e in entrants).items()):
        if position != expected:
            raise ValidationError(
                f"Gap in positions: expected {expected}, found {position}",
                field="position",
            )
        expected = position + group_size


def scoring_positions(entrants: Sequence[Entrant]) -> dict:
    """Competition-rank the entrants who did not opt out.

    Returns:
        Mapping of player id to scoring position among active entrants.
    """
    active_positions = sorted(e.position for e in entrants if not e.opted_out)
    result = {}
    for entrant in entrants:
        if entrant.opted_out:
            continue
        better = sum(1 for p in active_positions if p < entrant.position)
        result[entrant.player_id] = better + 1
    return result


def distribute_points(
    entrants: Iterable[Entrant],
    first_place_value: float,
    *,
    rated_player_count: int | None = None,
    config: EngineConfig | None = None,
) -> list[PointAward]:
    """Award points to every entrant of a finalized tournament.

    Opted-out entrants keep a zero-point award row and are excluded from the
    field size; the remaining entrants are re-ranked among themselves, so an
    opt-out never holds scoring position 1.

    Args:
        entrants: Final standings; ties share a position.
        first_place_value: Points for scoring position 1.
        rated_player_count: Rated entrants for the dynamic curve. Defaults
            to the active entrants flagged ``is_rated``.
        config: Engine configuration.

    Returns:
        One award per entrant, in standings order.

    Raises:
        ValidationError: On malformed standings or a negative value.
    """
    config = (config or EngineConfig()).validate()
    dist_config = config.distribution
    entrants = sorted(entrants, key=lambda e: e.position)
    validate_positions(entrants)

    if first_place_value < 0:
        raise ValidationError(
            f"first_place_value must be non-negative, got {first_place_value}",
            field="first_place_value",
        )

    scored = scoring_positions(entrants)
    player_count = len(scored)
    if rated_player_count is None:
        rated_player_count = sum(
            1 for e in entrants if e.is_rated and not e.opted_out
        )
    elif rated_player_count < 0:
        raise ValidationError(
            f"rated_player_count must be non-negative, got {rated_player_count}",
            field="rated_player_count",
        )

    awards: list[PointAward] = []
    for entrant in entrants:
        if entrant.opted_out:
            awards.append(
                PointAward(
                    player_id=entrant.player_id,
                    position=entrant.position,
                    scoring_position=None,
                    opted_out=True,
                    linear_points=0.0,
                    dynamic_points=0.0,
                    total_points=0.0,
                    efficiency=0.0,
                )
            )
            continue

        position = scored[entrant.player_id]
        linear = linear_points(
            position, player_count, first_place_value, dist_config
        )
        if position == 1:
            # Keep the winner's total exactly equal to first-place value.
            dynamic = first_place_value - linear
        else:
            dynamic = dynamic_points(
                position, rated_player_count, first_place_value, dist_config
            )
        total = linear + dynamic
        awards.append(
            PointAward(
                player_id=entrant.player_id,
                position=entrant.position,
                scoring_position=position,
                opted_out=False,
                linear_points=linear,
                dynamic_points=dynamic,
                total_points=total,
                efficiency=efficiency(total, first_place_value),
            )
        )

    logger.debug(
        "Distributed %.2f first-place value across %d entrants (%d opted out)",
        first_place_value,
        len(awards),
        len(awards) - player_count,
    )
    return awards


def awards_to_dataframe(awards: Sequence[PointAward]) -> pl.DataFrame:
    """Convert point awards to a Polars DataFrame."""
    return pl.DataFrame(
        {
            "player_id": [a.player_id for a in awards],
            "position": [a.position for a in awards],
            "scoring_position": [a.scoring_position for a in awards],
            "opted_out": [a.opted_out for a in awards],
            "linear_points": [a.linear_points for a in awards],
            "dynamic_points": [a.dynamic_points for a in awards],
            "total_points": [a.total_points for a in awards],
            "efficiency": [a.efficiency for a in awards],
        },
        schema_overrides={
            "scoring_position": pl.Int64,
            "linear_points": pl.Float64,
            "dynamic_points": pl.Float64,
            "total_points": pl.Float64,
            "efficiency": pl.Float64,
        },
    )
