"""Input records consumed by the scoring, decay, rating and ranking engines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Hashable, Optional

from pinball_rankings.core.constants import (
    DEFAULT_RATING,
    LOSS_SCORE,
    MAX_RATING_DEVIATION,
    TIE_SCORE,
    WIN_SCORE,
)
from pinball_rankings.core.exceptions import ConfigurationError, ValidationError

PlayerId = Hashable


class EventBooster(Enum):
    """Multiplier tiers applied to a tournament's graded value."""

    NONE = "none"
    CERTIFIED = "certified"
    CERTIFIED_PLUS = "certified-plus"
    CHAMPIONSHIP_SERIES = "championship-series"
    MAJOR = "major"

    @classmethod
    def parse(cls, value: EventBooster | str) -> EventBooster:
        """Accept an enum member, its value or its name in any case.

        Raises:
            ConfigurationError: If the code is not a known booster.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        raise ConfigurationError(
            f"Unknown event booster: {value!r}", parameter="event_booster"
        )


class MatchOutcome(Enum):
    """Result of a head-to-head unit from one entrant's point of view."""

    WIN = "win"
    LOSS = "loss"
    TIE = "tie"

    @property
    def score(self) -> float:
        if self is MatchOutcome.WIN:
            return WIN_SCORE
        if self is MatchOutcome.TIE:
            return TIE_SCORE
        return LOSS_SCORE

    @property
    def reversed(self) -> MatchOutcome:
        if self is MatchOutcome.WIN:
            return MatchOutcome.LOSS
        if self is MatchOutcome.LOSS:
            return MatchOutcome.WIN
        return MatchOutcome.TIE

    @classmethod
    def parse(cls, value: MatchOutcome | str | float) -> MatchOutcome:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            by_score = {WIN_SCORE: cls.WIN, TIE_SCORE: cls.TIE, LOSS_SCORE: cls.LOSS}
            if float(value) in by_score:
                return by_score[float(value)]
        raise ValidationError(f"Unknown match outcome: {value!r}", field="outcome")


@dataclass(frozen=True)
class FieldEntrant:
    """An entrant as seen by the tournament value calculator."""

    player_id: PlayerId
    rating: float = DEFAULT_RATING
    ranking: Optional[int] = None
    is_rated: bool = False


@dataclass(frozen=True)
class Entrant:
    """A finishing position to be scored by the points distributor."""

    player_id: PlayerId
    position: int
    opted_out: bool = False
    is_rated: bool = True


@dataclass(frozen=True)
class ResultRecord:
    """A stored result whose points are subject to time decay."""

    total_points: float
    tournament_date: datetime
    result_id: Optional[Hashable] = None
    player_id: Optional[PlayerId] = None
    tournament_id: Optional[Hashable] = None


@dataclass(frozen=True)
class PlayerState:
    """Snapshot of a player's rating state.

    Instances are never mutated; the rating engine and the ranking aggregator
    return new snapshots.
    """

    player_id: PlayerId
    rating: float = DEFAULT_RATING
    rating_deviation: float = MAX_RATING_DEVIATION
    event_count: int = 0
    is_rated: bool = False
    ranking: Optional[int] = None
    last_rating_update: Optional[datetime] = None
    last_event_date: Optional[datetime] = None


@dataclass(frozen=True)
class Match:
    """One head-to-head outcome from ``player_id``'s point of view."""

    player_id: PlayerId
    opponent_id: PlayerId
    outcome: MatchOutcome
    position: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcome", MatchOutcome.parse(self.outcome))
        if self.player_id == self.opponent_id:
            raise ValidationError(
                f"Player {self.player_id!r} cannot play against themselves",
                field="opponent_id",
            )

    def mirrored(self) -> Match:
        """The same match from the opponent's point of view."""
        return Match(
            player_id=self.opponent_id,
            opponent_id=self.player_id,
            outcome=self.outcome.reversed,
        )


@dataclass(frozen=True)
class Standing:
    """A final tournament position used to simulate pairwise matches."""

    player_id: PlayerId
    position: int


@dataclass(frozen=True)
class PlayerStanding:
    """Per-player aggregate consumed by the ranking aggregator."""

    player_id: PlayerId
    decayed_points_sum: float
    rating: float
    is_rated: bool
    event_count: Optional[int] = None
    last_event_date: Optional[datetime] = None
