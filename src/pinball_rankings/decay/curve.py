"""Decay curves mapping a result's age to a weight multiplier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import polars as pl

from pinball_rankings.core import constants as C
from pinball_rankings.core.config import DecayConfig
from pinball_rankings.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from typing import Any


@runtime_checkable
class DecayCurve(Protocol):
    """Protocol for age-based decay curves.

    A curve is non-increasing in age, returns 1.0 at age 0 and stays within
    [0, 1].
    """

    def multiplier(self, age_in_days: int) -> float:
        """Weight of a result that is ``age_in_days`` old."""
        ...

    def expr(self, age_column: str) -> pl.Expr:
        """Polars expression computing the multiplier from an age column."""
        ...


@dataclass(frozen=True)
class StepDecay:
    """Piecewise-constant decay by whole years of age.

    ``steps`` lists ``(age in years, multiplier from that age on)``. With the
    default table a result keeps full weight in its first year, 75% in the
    second, 50% in the third and nothing afterwards.
    """

    steps: tuple[tuple[float, float], ...] = C.DEFAULT_DECAY_STEPS
    days_per_year: int = C.DAYS_PER_YEAR

    def __post_init__(self) -> None:
        DecayConfig(
            curve="step", steps=self.steps, days_per_year=self.days_per_year
        ).validate()

    def multiplier(self, age_in_days: int) -> float:
        age_in_years = max(age_in_days, 0) / self.days_per_year
        current = self.steps[0][1]
        for threshold, value in self.steps:
            if age_in_years < threshold:
                break
            current = value
        return current

    def expr(self, age_column: str) -> pl.Expr:
        years = pl.col(age_column).clip(lower_bound=0) / self.days_per_year
        chain = pl.when(years < self.steps[1][0]).then(pl.lit(self.steps[0][1]))
        for (_, value), (next_threshold, _) in zip(
            self.steps[1:], self.steps[2:]
        ):
            chain = chain.when(years < next_threshold).then(pl.lit(value))
        return chain.otherwise(pl.lit(self.steps[-1][1])).cast(pl.Float64)


@dataclass(frozen=True)
class LinearDecay:
    """Full weight through ``full_weight_days``, then a straight line to zero
    at ``max_age_days``."""

    full_weight_days: int = C.DEFAULT_FULL_WEIGHT_DAYS
    max_age_days: int = C.DEFAULT_MAX_AGE_DAYS

    def __post_init__(self) -> None:
        DecayConfig(
            curve="linear",
            full_weight_days=self.full_weight_days,
            max_age_days=self.max_age_days,
        ).validate()

    def multiplier(self, age_in_days: int) -> float:
        if age_in_days <= self.full_weight_days:
            return 1.0
        if age_in_days >= self.max_age_days:
            return 0.0
        span = self.max_age_days - self.full_weight_days
        return 1.0 - (age_in_days - self.full_weight_days) / span

    def expr(self, age_column: str) -> pl.Expr:
        age = pl.col(age_column)
        span = self.max_age_days - self.full_weight_days
        return (
            pl.when(age <= self.full_weight_days)
            .then(pl.lit(1.0))
            .when(age >= self.max_age_days)
            .then(pl.lit(0.0))
            .otherwise(1.0 - (age - self.full_weight_days) / span)
            .cast(pl.Float64)
        )


def get_decay_curve(mode: str, **kwargs: Any) -> DecayCurve:
    """Factory function to get a decay curve by name.

    Args:
        mode: "step" or "linear".
        **kwargs: Curve parameters; keys the curve does not take are ignored.

    Returns:
        DecayCurve instance.

    Raises:
        ConfigurationError: If the curve name is unknown or its parameters
            are invalid.
    """
    curve_classes = {
        "step": StepDecay,
        "linear": LinearDecay,
    }

    curve_class = curve_classes.get(mode)
    if curve_class is None:
        raise ConfigurationError(f"Unknown decay curve: {mode}", parameter="curve")

    valid_fields = curve_class.__dataclass_fields__.keys()
    filtered_kwargs = {
        key: value for key, value in kwargs.items() if key in valid_fields
    }
    return curve_class(**filtered_kwargs)


def curve_from_config(config: DecayConfig | None = None) -> DecayCurve:
    """Build the curve described by a ``DecayConfig``."""
    config = config or DecayConfig()
    return get_decay_curve(
        config.curve,
        steps=config.steps,
        days_per_year=config.days_per_year,
        full_weight_days=config.full_weight_days,
        max_age_days=config.max_age_days,
    )
