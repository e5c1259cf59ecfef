"""
Tournament value calculation.

A tournament's First-Place Value is built up in stages:

1. base value from the number of rated entrants,
2. rating TVA from how strong the rated entrants are,
3. ranking TVA from how many top-ranked players are present,
4. the combined TVA cap,
5. the TGP (format quality) multiplier,
6. the event booster multiplier.

Every function here is pure: identical inputs always give identical outputs,
which keeps re-imports of a finalized tournament idempotent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Integral
from typing import Iterable, Optional, Sequence

from pinball_rankings.core.config import (
    BaseValueConfig,
    BoosterConfig,
    EngineConfig,
    TvaConfig,
)
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.logging import get_logger
from pinball_rankings.core.models import EventBooster, FieldEntrant
from pinball_rankings.core.results import TournamentValue

logger = get_logger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    """Ratings of the rated entrants in a field.

    ``rating_tva_override`` carries an already computed rating TVA, for
    callers that store the sum instead of the individual ratings.
    """

    ratings: tuple[float, ...] = field(default_factory=tuple)
    rating_tva_override: Optional[float] = None

    def __post_init__(self) -> None:
        override = self.rating_tva_override
        if override is not None and (not math.isfinite(override) or override < 0):
            raise ValidationError(
                f"Invalid rating TVA override: {override}",
                field="rating_tva_override",
            )
        object.__setattr__(self, "ratings", tuple(float(r) for r in self.ratings))
        for rating in self.ratings:
            if not math.isfinite(rating) or rating < 0:
                raise ValidationError(
                    f"Invalid entrant rating: {rating}", field="ratings"
                )


@dataclass(frozen=True)
class RankingSummary:
    """World ranking positions of ranked entrants in a field."""

    rankings: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rankings", tuple(self.rankings))
        for ranking in self.rankings:
            if (
                not isinstance(ranking, Integral)
                or isinstance(ranking, bool)
                or ranking < 1
            ):
                raise ValidationError(
                    f"Invalid entrant ranking: {ranking!r}", field="rankings"
                )


@dataclass(frozen=True)
class FieldSummary:
    """Everything the value calculator needs to know about a field."""

    rated_player_count: int
    total_player_count: int
    rating_summary: RatingSummary
    ranking_summary: RankingSummary


def summarize_field(entrants: Iterable[FieldEntrant]) -> FieldSummary:
    """Build value calculator inputs from a list of entrants.

    Only rated entrants count toward base value and rating TVA; any entrant
    holding a rank position counts toward ranking TVA.
    """
    entrants = list(entrants)
    rated = [entrant for entrant in entrants if entrant.is_rated]
    return FieldSummary(
        rated_player_count=len(rated),
        total_player_count=len(entrants),
        rating_summary=RatingSummary(tuple(entrant.rating for entrant in rated)),
        ranking_summary=RankingSummary(
            tuple(
                entrant.ranking
                for entrant in entrants
                if entrant.ranking is not None and entrant.ranking > 0
            )
        ),
    )


def base_value(
    rated_player_count: int, config: BaseValueConfig | None = None
) -> float:
    """0.5 points per rated entrant, capped at 32 (64+ rated entrants)."""
    config = config or BaseValueConfig()
    return min(
        rated_player_count * config.points_per_rated_player,
        config.max_base_value,
    )


def player_rating_contribution(
    rating: float, config: TvaConfig | None = None
) -> float:
    """Rating TVA contributed by a single entrant.

    A 2000-rated player adds about 0.39 points; players rated below roughly
    1286 add nothing.
    """
    config = config or TvaConfig()
    return max(0.0, rating * config.rating_coefficient - config.rating_offset)


def rating_tva(ratings: Sequence[float], config: TvaConfig | None = None) -> float:
    """Sum of the top 64 rating contributions, capped at 25."""
    config = config or TvaConfig()
    top_ratings = sorted(ratings, reverse=True)[: config.max_players_considered]
    total = math.fsum(
        player_rating_contribution(rating, config) for rating in top_ratings
    )
    return min(total, config.max_rating_tva)


def player_ranking_contribution(
    ranking: int, config: TvaConfig | None = None
) -> float:
    """Ranking TVA contributed by a single entrant.

    The world #1 adds about 1.46 points, #2 about 1.31.
    """
    config = config or TvaConfig()
    contribution = (
        math.log(max(1, ranking)) * config.ranking_coefficient
        + config.ranking_offset
    )
    return max(0.0, contribution)


def ranking_tva(rankings: Sequence[int], config: TvaConfig | None = None) -> float:
    """Sum of the 64 best ranking contributions, capped at 50."""
    config = config or TvaConfig()
    top_rankings = sorted(r for r in rankings if r > 0)[
        : config.max_players_considered
    ]
    total = math.fsum(
        player_ranking_contribution(ranking, config) for ranking in top_rankings
    )
    return min(total, config.max_ranking_tva)


def parse_event_booster(value: EventBooster | str) -> EventBooster:
    """Parse a booster code such as ``"certified-plus"`` or ``"CERTIFIED_PLUS"``."""
    return EventBooster.parse(value)


def booster_multiplier(
    event_booster: EventBooster | str, config: BoosterConfig | None = None
) -> float:
    """Multiplier for an event booster tier.

    Raises:
        ConfigurationError: If the booster code is unknown.
    """
    config = config or BoosterConfig()
    booster = parse_event_booster(event_booster)
    return {
        EventBooster.NONE: config.none,
        EventBooster.CERTIFIED: config.certified,
        EventBooster.CERTIFIED_PLUS: config.certified_plus,
        EventBooster.CHAMPIONSHIP_SERIES: config.championship_series,
        EventBooster.MAJOR: config.major,
    }[booster]


def validate_tgp(tgp: float) -> float:
    if isinstance(tgp, bool) or not isinstance(tgp, (int, float)):
        raise ValidationError(f"TGP must be a number, got {tgp!r}", field="tgp")
    if not math.isfinite(tgp) or not 0.0 < tgp <= 1.0:
        raise ValidationError(f"TGP must be in (0, 1], got {tgp}", field="tgp")
    return float(tgp)


def _validate_counts(rated_player_count: int, total_player_count: int) -> None:
    for name, value in (
        ("rated_player_count", rated_player_count),
        ("total_player_count", total_player_count),
    ):
        if isinstance(value, bool) or not isinstance(value, Integral) or value < 0:
            raise ValidationError(
                f"{name} must be a non-negative integer, got {value!r}",
                field=name,
            )
    if rated_player_count > total_player_count:
        raise ValidationError(
            f"rated_player_count ({rated_player_count}) cannot exceed "
            f"total_player_count ({total_player_count})",
            field="rated_player_count",
        )


def compute_tournament_value(
    rated_player_count: int,
    total_player_count: int,
    rating_summary: RatingSummary | Sequence[float],
    ranking_summary: RankingSummary | Sequence[int],
    tgp: float,
    event_booster: EventBooster | str,
    config: EngineConfig | None = None,
) -> TournamentValue:
    """Compute the First-Place Value of a tournament.

    Args:
        rated_player_count: Entrants holding a rating (5+ counted events).
        total_player_count: All entrants.
        rating_summary: Ratings of the rated entrants.
        ranking_summary: World ranking positions of ranked entrants.
        tgp: Tournament Grading Percentage in (0, 1].
        event_booster: Booster tier.
        config: Engine configuration. Defaults to the standard policy tables.

    Returns:
        All derived value fields, including ``first_place_value``.

    Raises:
        ValidationError: On out-of-range counts or TGP.
        ConfigurationError: On an unknown booster code.
    """
    config = (config or EngineConfig()).validate()
    _validate_counts(rated_player_count, total_player_count)
    tgp = validate_tgp(tgp)
    booster = parse_event_booster(event_booster)

    if not isinstance(rating_summary, RatingSummary):
        rating_summary = RatingSummary(tuple(rating_summary))
    if not isinstance(ranking_summary, RankingSummary):
        ranking_summary = RankingSummary(tuple(ranking_summary))

    base = base_value(rated_player_count, config.base_value)
    if rating_summary.rating_tva_override is not None:
        from_ratings = min(
            rating_summary.rating_tva_override, config.tva.max_rating_tva
        )
    else:
        from_ratings = rating_tva(rating_summary.ratings, config.tva)
    from_rankings = ranking_tva(ranking_summary.rankings, config.tva)
    total_tva = min(from_ratings + from_rankings, config.tva.max_total_tva)

    raw_value = base + total_tva
    after_tgp = raw_value * tgp
    multiplier = booster_multiplier(booster, config.boosters)
    first_place_value = after_tgp * multiplier

    logger.debug(
        "Tournament value: base=%.2f rating_tva=%.2f ranking_tva=%.2f "
        "tgp=%.2f booster=%s first_place=%.2f",
        base,
        from_ratings,
        from_rankings,
        tgp,
        booster.value,
        first_place_value,
    )

    return TournamentValue(
        rated_player_count=rated_player_count,
        total_player_count=total_player_count,
        tgp=tgp,
        event_booster=booster,
        base_value=base,
        rating_tva=from_ratings,
        ranking_tva=from_rankings,
        total_tva=total_tva,
        raw_value=raw_value,
        after_tgp=after_tgp,
        booster_multiplier=multiplier,
        first_place_value=first_place_value,
    )


def compute_field_value(
    entrants: Iterable[FieldEntrant],
    tgp: float,
    event_booster: EventBooster | str,
    config: EngineConfig | None = None,
) -> TournamentValue:
    """Convenience wrapper: summarize a field and value it."""
    summary = summarize_field(entrants)
    return compute_tournament_value(
        summary.rated_player_count,
        summary.total_player_count,
        summary.rating_summary,
        summary.ranking_summary,
        tgp,
        event_booster,
        config,
    )
