"""Configuration dataclasses for the scoring, decay and rating engines."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from pinball_rankings.core import constants as C
from pinball_rankings.core.exceptions import ConfigurationError


def _require(condition: bool, message: str, parameter: str) -> None:
    if not condition:
        raise ConfigurationError(message, parameter=parameter)


@dataclass(frozen=True)
class BaseValueConfig:
    """Configuration for the base value of a tournament."""

    points_per_rated_player: float = C.BASE_POINTS_PER_RATED_PLAYER
    max_base_value: float = C.MAX_BASE_VALUE
    rated_player_threshold: int = C.RATED_PLAYER_THRESHOLD

    def validate(self) -> None:
        _require(
            self.points_per_rated_player >= 0,
            "points_per_rated_player must be non-negative",
            "points_per_rated_player",
        )
        _require(
            self.max_base_value >= 0,
            "max_base_value must be non-negative",
            "max_base_value",
        )
        _require(
            self.rated_player_threshold >= 1,
            "rated_player_threshold must be at least 1",
            "rated_player_threshold",
        )


@dataclass(frozen=True)
class TvaConfig:
    """Configuration for the rating and ranking value adjustments."""

    rating_coefficient: float = C.RATING_TVA_COEFFICIENT
    rating_offset: float = C.RATING_TVA_OFFSET
    max_rating_tva: float = C.MAX_RATING_TVA

    ranking_coefficient: float = C.RANKING_TVA_COEFFICIENT
    ranking_offset: float = C.RANKING_TVA_OFFSET
    max_ranking_tva: float = C.MAX_RANKING_TVA

    max_total_tva: float = C.MAX_TOTAL_TVA
    max_players_considered: int = C.TVA_MAX_PLAYERS_CONSIDERED

    def validate(self) -> None:
        for name in ("max_rating_tva", "max_ranking_tva", "max_total_tva"):
            _require(
                getattr(self, name) >= 0, f"{name} must be non-negative", name
            )
        _require(
            self.rating_coefficient >= 0,
            "rating_coefficient must be non-negative so stronger fields are worth more",
            "rating_coefficient",
        )
        _require(
            self.ranking_coefficient <= 0,
            "ranking_coefficient must be non-positive so better ranks are worth more",
            "ranking_coefficient",
        )
        _require(
            self.max_players_considered >= 1,
            "max_players_considered must be at least 1",
            "max_players_considered",
        )


@dataclass(frozen=True)
class BoosterConfig:
    """Event booster multiplier table."""

    none: float = C.BOOSTER_NONE
    certified: float = C.BOOSTER_CERTIFIED
    certified_plus: float = C.BOOSTER_CERTIFIED_PLUS
    championship_series: float = C.BOOSTER_CHAMPIONSHIP_SERIES
    major: float = C.BOOSTER_MAJOR

    def validate(self) -> None:
        _require(self.none > 0, "booster multipliers must be positive", "none")
        ordered = [
            ("none", self.none),
            ("certified", self.certified),
            ("certified_plus", self.certified_plus),
            ("championship_series", self.championship_series),
            ("major", self.major),
        ]
        for (lower_name, lower), (upper_name, upper) in zip(
            ordered, ordered[1:]
        ):
            _require(
                lower < upper,
                f"booster {upper_name} ({upper}) must exceed {lower_name} ({lower})",
                upper_name,
            )


@dataclass(frozen=True)
class DistributionConfig:
    """Configuration for splitting first-place value across finishers."""

    linear_share: float = C.LINEAR_SHARE
    dynamic_share: float = C.DYNAMIC_SHARE
    position_exponent: float = C.DYNAMIC_POSITION_EXPONENT
    value_exponent: float = C.DYNAMIC_VALUE_EXPONENT
    max_dynamic_players: int = C.MAX_DYNAMIC_PLAYERS

    def validate(self) -> None:
        _require(
            0 < self.linear_share <= 1,
            "linear_share must be in (0, 1]",
            "linear_share",
        )
        _require(
            0 <= self.dynamic_share < 1,
            "dynamic_share must be in [0, 1)",
            "dynamic_share",
        )
        _require(
            math.isclose(
                self.linear_share + self.dynamic_share, 1.0, abs_tol=1e-9
            ),
            "linear_share and dynamic_share must sum to 1",
            "dynamic_share",
        )
        _require(
            self.position_exponent > 0,
            "position_exponent must be positive",
            "position_exponent",
        )
        _require(
            self.value_exponent > 0,
            "value_exponent must be positive",
            "value_exponent",
        )
        _require(
            self.max_dynamic_players >= 1,
            "max_dynamic_players must be at least 1",
            "max_dynamic_players",
        )


@dataclass(frozen=True)
class DecayConfig:
    """Configuration for time decay of awarded points."""

    curve: str = "step"  # "step" or "linear"

    # Step curve: (age threshold in years, multiplier from that age on)
    steps: tuple[tuple[float, float], ...] = C.DEFAULT_DECAY_STEPS
    days_per_year: int = C.DAYS_PER_YEAR

    # Linear curve
    full_weight_days: int = C.DEFAULT_FULL_WEIGHT_DAYS
    max_age_days: int = C.DEFAULT_MAX_AGE_DAYS

    def validate(self) -> None:
        _require(
            self.curve in ("step", "linear"),
            f"Unknown decay curve: {self.curve}",
            "curve",
        )
        _require(
            self.days_per_year > 0, "days_per_year must be positive", "days_per_year"
        )
        if self.curve == "step":
            _require(bool(self.steps), "steps cannot be empty", "steps")
            _require(
                self.steps[0][0] == 0 and self.steps[0][1] == 1.0,
                "the first decay step must start at age 0 with full weight",
                "steps",
            )
            _require(
                self.steps[-1][1] == 0.0,
                "the last decay step must drop the multiplier to 0",
                "steps",
            )
            for (prev_age, prev_mult), (age, mult) in zip(
                self.steps, self.steps[1:]
            ):
                _require(
                    age > prev_age,
                    "decay step ages must be strictly increasing",
                    "steps",
                )
                _require(
                    0.0 <= mult <= prev_mult,
                    "decay step multipliers must be non-increasing within [0, 1]",
                    "steps",
                )
        else:
            _require(
                0 <= self.full_weight_days < self.max_age_days,
                "linear decay needs 0 <= full_weight_days < max_age_days",
                "max_age_days",
            )


@dataclass(frozen=True)
class GlickoConfig:
    """Configuration for the Glicko rating update."""

    default_rating: float = C.DEFAULT_RATING
    min_rd: float = C.MIN_RATING_DEVIATION
    max_rd: float = C.MAX_RATING_DEVIATION
    rd_increase_per_day: float = C.RD_INCREASE_PER_DAY
    opponents_range: int = C.OPPONENTS_RANGE
    q: float = C.GLICKO_Q
    rated_threshold: int = C.RATED_PLAYER_THRESHOLD

    def validate(self) -> None:
        _require(
            0 < self.min_rd <= self.max_rd,
            "rating deviation bounds need 0 < min_rd <= max_rd",
            "min_rd",
        )
        _require(
            self.rd_increase_per_day >= 0,
            "rd_increase_per_day must be non-negative",
            "rd_increase_per_day",
        )
        _require(self.q > 0, "q must be positive", "q")
        _require(
            self.opponents_range >= 1,
            "opponents_range must be at least 1",
            "opponents_range",
        )
        _require(
            self.rated_threshold >= 1,
            "rated_threshold must be at least 1",
            "rated_threshold",
        )


@dataclass(frozen=True)
class RankingConfig:
    """Configuration for the rank and rating lists."""

    top_events_count: int = C.TOP_EVENTS_COUNT
    min_events_for_ranking: int = C.MIN_EVENTS_FOR_RANKING

    def validate(self) -> None:
        _require(
            self.top_events_count >= 1,
            "top_events_count must be at least 1",
            "top_events_count",
        )
        _require(
            self.min_events_for_ranking >= 0,
            "min_events_for_ranking must be non-negative",
            "min_events_for_ranking",
        )


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""

    base_value: BaseValueConfig = field(default_factory=BaseValueConfig)
    tva: TvaConfig = field(default_factory=TvaConfig)
    boosters: BoosterConfig = field(default_factory=BoosterConfig)
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    decay: DecayConfig = field(default_factory=DecayConfig)
    glicko: GlickoConfig = field(default_factory=GlickoConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)

    def validate(self) -> EngineConfig:
        """Validate every section, returning self for chaining."""
        for section in dataclasses.fields(self):
            getattr(self, section.name).validate()
        return self

    @classmethod
    def from_dict(cls, overrides: Mapping[str, Any] | None) -> EngineConfig:
        """Build a config by merging partial overrides onto the defaults.

        Only specified values are overridden; everything else keeps its
        default.

        Examples:
            >>> EngineConfig.from_dict({"boosters": {"major": 2.5}}).boosters.major
            2.5
        """
        return _merge(cls(), overrides or {}).validate()


def _merge(instance: Any, overrides: Mapping[str, Any]) -> Any:
    known = {f.name: f for f in dataclasses.fields(instance)}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigurationError(
                f"Unknown configuration key '{key}' for {type(instance).__name__}",
                parameter=key,
            )
        current = getattr(instance, key)
        if dataclasses.is_dataclass(current):
            if not isinstance(value, Mapping):
                raise ConfigurationError(
                    f"Configuration section '{key}' must be a mapping",
                    parameter=key,
                )
            changes[key] = _merge(current, value)
        elif key == "steps":
            changes[key] = tuple(
                (float(age), float(mult)) for age, mult in value
            )
        else:
            changes[key] = value
    return dataclasses.replace(instance, **changes)


def load_config(path: str | Path | None) -> EngineConfig:
    """Load engine configuration overrides from a YAML file.

    Args:
        path: YAML file with partial overrides. ``None`` returns defaults.

    Returns:
        Validated engine configuration.
    """
    if path is None:
        return EngineConfig().validate()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping"
        )
    return EngineConfig.from_dict(data)
