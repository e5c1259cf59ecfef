"""
Time decay of awarded points.

Decay is a pure function of a result's points, its tournament date and the
evaluation date, so running it twice for the same ``as_of`` gives the same
fields. The three decay fields are always produced together.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import polars as pl

from pinball_rankings.core.config import EngineConfig
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.logging import get_logger
from pinball_rankings.core.models import ResultRecord
from pinball_rankings.core.results import DecayResult
from pinball_rankings.core.time import Timestamp, days_between, to_datetime
from pinball_rankings.decay.curve import DecayCurve, curve_from_config

logger = get_logger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECONDS_PER_DAY = 86_400 * 1_000_000


def event_age_days(tournament_date: Timestamp, as_of: Timestamp) -> int:
    """Whole days between the tournament and ``as_of``, clamped at zero.

    A tournament dated after ``as_of`` is treated as age 0 and logged.
    """
    age = days_between(tournament_date, as_of)
    if age < 0:
        logger.warning(
            "Tournament date %s is %d days after as_of %s; treating age as 0",
            to_datetime(tournament_date).date().isoformat(),
            -age,
            to_datetime(as_of).date().isoformat(),
        )
        return 0
    return age


def event_age_years(
    tournament_date: Timestamp,
    as_of: Timestamp,
    config: EngineConfig | None = None,
) -> float:
    config = config or EngineConfig()
    return event_age_days(tournament_date, as_of) / config.decay.days_per_year


def is_event_active(
    tournament_date: Timestamp,
    as_of: Timestamp,
    config: EngineConfig | None = None,
) -> bool:
    """Whether a result still carries any weight at ``as_of``."""
    config = config or EngineConfig()
    curve = curve_from_config(config.decay)
    return curve.multiplier(event_age_days(tournament_date, as_of)) > 0


def apply_decay(
    result: ResultRecord,
    as_of: Timestamp,
    *,
    config: EngineConfig | None = None,
    curve: DecayCurve | None = None,
) -> DecayResult:
    """Compute the decay fields of a single result.

    Args:
        result: Stored result with ``total_points`` and ``tournament_date``.
        as_of: Evaluation date.
        config: Engine configuration; selects the decay curve.
        curve: Explicit curve, overriding the configured one.

    Returns:
        ``age_in_days``, ``decay_multiplier`` and ``decayed_points``.

    Raises:
        ValidationError: If the points are negative or not finite, or a date
            cannot be interpreted.
    """
    points = result.total_points
    if not math.isfinite(points) or points < 0:
        raise ValidationError(
            f"total_points must be a non-negative number, got {points!r}",
            field="total_points",
        )
    if curve is None:
        curve = curve_from_config((config or EngineConfig()).validate().decay)

    age = event_age_days(result.tournament_date, as_of)
    multiplier = curve.multiplier(age)
    return DecayResult(
        age_in_days=age,
        decay_multiplier=multiplier,
        decayed_points=points * multiplier,
    )


def _utc_datetime_expr(column: str, dtype: pl.DataType) -> pl.Expr:
    col = pl.col(column)
    if dtype == pl.Date:
        return col.cast(pl.Datetime("us")).dt.replace_time_zone("UTC")
    if dtype == pl.Utf8:
        return col.str.to_datetime(time_unit="us").dt.replace_time_zone("UTC")
    if isinstance(dtype, pl.Datetime):
        if dtype.time_zone is None:
            return col.dt.replace_time_zone("UTC")
        return col.dt.convert_time_zone("UTC")
    raise ValidationError(
        f"Column '{column}' has unsupported type {dtype} for dates",
        field=column,
    )


def decay_frame(
    results: pl.DataFrame,
    as_of: Timestamp,
    *,
    config: EngineConfig | None = None,
    curve: DecayCurve | None = None,
    date_column: str = "tournament_date",
    points_column: str = "total_points",
) -> pl.DataFrame:
    """Vectorized ``apply_decay`` over a results DataFrame.

    Args:
        results: DataFrame with a date column (Date, Datetime or ISO string)
            and a points column.
        as_of: Evaluation date.
        config: Engine configuration; selects the decay curve.
        curve: Explicit curve, overriding the configured one.
        date_column: Name of the tournament date column.
        points_column: Name of the awarded points column.

    Returns:
        ``results`` with ``age_in_days``, ``decay_multiplier`` and
        ``decayed_points`` columns added or replaced.
    """
    for column in (date_column, points_column):
        if column not in results.columns:
            raise ValidationError(
                f"Results are missing required column '{column}'", field=column
            )
    if curve is None:
        curve = curve_from_config((config or EngineConfig()).validate().decay)
    if results.is_empty():
        return results.with_columns(
            pl.lit(None, dtype=pl.Int64).alias("age_in_days"),
            pl.lit(None, dtype=pl.Float64).alias("decay_multiplier"),
            pl.lit(None, dtype=pl.Float64).alias("decayed_points"),
        )

    negative_points = results.filter(pl.col(points_column) < 0).height
    if negative_points:
        raise ValidationError(
            f"{negative_points} results have negative {points_column}",
            field=points_column,
        )

    as_of_us = (to_datetime(as_of) - _EPOCH) // timedelta(microseconds=1)
    event_us = _utc_datetime_expr(
        date_column, results.schema[date_column]
    ).dt.epoch("us")
    raw_age = (pl.lit(as_of_us) - event_us) // _MICROSECONDS_PER_DAY

    aged = results.with_columns(raw_age.cast(pl.Int64).alias("age_in_days"))
    future_rows = aged.filter(pl.col("age_in_days") < 0).height
    if future_rows:
        logger.warning(
            "%d results are dated after as_of %s; treating their age as 0",
            future_rows,
            to_datetime(as_of).date().isoformat(),
        )

    return aged.with_columns(
        pl.col("age_in_days").clip(lower_bound=0)
    ).with_columns(
        curve.expr("age_in_days").alias("decay_multiplier")
    ).with_columns(
        (pl.col(points_column).cast(pl.Float64) * pl.col("decay_multiplier"))
        .alias("decayed_points")
    )
