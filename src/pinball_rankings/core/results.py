"""Result dataclasses returned by the engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import polars as pl

from pinball_rankings.core.models import EventBooster, PlayerState

if TYPE_CHECKING:
    from typing import Any


@dataclass(frozen=True)
class TournamentValue:
    """Derived value fields of a finalized tournament."""

    rated_player_count: int
    total_player_count: int
    tgp: float
    event_booster: EventBooster

    base_value: float
    rating_tva: float
    ranking_tva: float
    total_tva: float
    raw_value: float
    after_tgp: float
    booster_multiplier: float
    first_place_value: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for easy serialization.

        Returns:
            Dictionary with all value fields.
        """
        data = asdict(self)
        data["event_booster"] = self.event_booster.value
        return data


@dataclass(frozen=True)
class PointAward:
    """Points awarded for one entrant's finish."""

    player_id: Any
    position: int
    scoring_position: Optional[int]
    opted_out: bool
    linear_points: float
    dynamic_points: float
    total_points: float
    efficiency: float


@dataclass(frozen=True)
class DecayResult:
    """Decay fields of one result, always produced together."""

    age_in_days: int
    decay_multiplier: float
    decayed_points: float


@dataclass(frozen=True)
class RatingUpdate:
    """New rating state for one player after a tournament."""

    player_id: Any
    rating: float
    rating_deviation: float
    event_count: int
    is_rated: bool

    previous_rating: float
    previous_rating_deviation: float
    matches_played: int
    last_rating_update: Optional[datetime] = None
    last_event_date: Optional[datetime] = None

    @property
    def rating_change(self) -> float:
        return self.rating - self.previous_rating

    def to_player_state(self, ranking: Optional[int] = None) -> PlayerState:
        """Build the updated player snapshot."""
        return PlayerState(
            player_id=self.player_id,
            rating=self.rating,
            rating_deviation=self.rating_deviation,
            event_count=self.event_count,
            is_rated=self.is_rated,
            ranking=ranking,
            last_rating_update=self.last_rating_update,
            last_event_date=self.last_event_date,
        )


@dataclass(frozen=True)
class RankingOrder:
    """The two public orderings produced by the ranking aggregator."""

    rank_order: list[Any]
    rating_order: list[Any]
    rankings: dict[Any, Optional[int]] = field(default_factory=dict)

    def ranking_of(self, player_id: Any) -> Optional[int]:
        """1-based rank position of a player, or None if unranked."""
        return self.rankings.get(player_id)

    def to_dataframe(self) -> pl.DataFrame:
        """Convert to a Polars DataFrame with one row per known player.

        Returns:
            DataFrame with ``player_id``, ``ranking`` and ``rating_position``.
        """
        rating_positions = {
            player_id: index + 1
            for index, player_id in enumerate(self.rating_order)
        }
        player_ids = list(self.rankings.keys())
        return pl.DataFrame(
            {
                "player_id": player_ids,
                "ranking": [self.rankings[pid] for pid in player_ids],
                "rating_position": [
                    rating_positions.get(pid) for pid in player_ids
                ],
            },
            schema_overrides={"ranking": pl.Int64, "rating_position": pl.Int64},
        )


@dataclass
class SweepReport:
    """Summary of a bulk decay sweep."""

    as_of: datetime
    partition_by: str
    partitions_total: int = 0
    partitions_done: int = 0
    rows_updated: int = 0
    retries: int = 0
    failed_partitions: list[Any] = field(default_factory=list)
    cancelled: bool = False
    computation_time: float | None = None

    @property
    def succeeded(self) -> bool:
        return not self.failed_partitions and not self.cancelled

    def __str__(self) -> str:
        """Human-readable sweep status."""
        message = (
            f"Decay sweep as of {self.as_of.date().isoformat()}: "
            f"{self.partitions_done}/{self.partitions_total} partitions, "
            f"{self.rows_updated} rows"
        )
        if self.failed_partitions:
            message += f", {len(self.failed_partitions)} failed"
        if self.cancelled:
            message += " (cancelled)"
        return message
