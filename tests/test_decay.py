"""Tests for the time decay engine."""

import logging
from datetime import date, datetime, timedelta, timezone

import polars as pl
import pytest

from pinball_rankings.core.config import EngineConfig
from pinball_rankings.core.exceptions import ConfigurationError, ValidationError
from pinball_rankings.core.models import ResultRecord
from pinball_rankings.decay import (
    LinearDecay,
    StepDecay,
    apply_decay,
    decay_frame,
    event_age_years,
    get_decay_curve,
    is_event_active,
)

AS_OF = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _result(points, days_old):
    return ResultRecord(
        total_points=points, tournament_date=AS_OF - timedelta(days=days_old)
    )


class TestStepDecay:
    """Test the default yearly step curve."""

    @pytest.mark.parametrize(
        "days,multiplier",
        [
            (0, 1.0),
            (200, 1.0),
            (364, 1.0),
            (365, 0.75),
            (729, 0.75),
            (730, 0.5),
            (1094, 0.5),
            (1095, 0.0),
            (5000, 0.0),
        ],
    )
    def test_multiplier_by_age(self, days, multiplier):
        decayed = apply_decay(_result(40.0, days), AS_OF)
        assert decayed.age_in_days == days
        assert decayed.decay_multiplier == multiplier
        assert decayed.decayed_points == pytest.approx(40.0 * multiplier)

    def test_non_increasing(self):
        curve = StepDecay()
        values = [curve.multiplier(day) for day in range(0, 1500, 7)]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert values[-1] == 0.0

    def test_invalid_steps(self):
        with pytest.raises(ConfigurationError):
            StepDecay(steps=((0.0, 1.0), (1.0, 0.5), (2.0, 0.8), (3.0, 0.0)))
        with pytest.raises(ConfigurationError):
            StepDecay(steps=((0.0, 1.0), (2.0, 0.5), (1.0, 0.0)))


class TestLinearDecay:
    def test_taper(self):
        curve = LinearDecay(full_weight_days=365, max_age_days=1095)
        assert curve.multiplier(100) == 1.0
        assert curve.multiplier(730) == pytest.approx(0.5)
        assert curve.multiplier(1095) == 0.0

    def test_selected_by_config(self):
        config = EngineConfig.from_dict(
            {"decay": {"curve": "linear", "full_weight_days": 0, "max_age_days": 100}}
        )
        decayed = apply_decay(_result(10.0, 25), AS_OF, config=config)
        assert decayed.decay_multiplier == pytest.approx(0.75)

    def test_invalid_bounds(self):
        with pytest.raises(ConfigurationError):
            LinearDecay(full_weight_days=500, max_age_days=100)

    def test_unknown_curve(self):
        with pytest.raises(ConfigurationError):
            get_decay_curve("exponential")


class TestApplyDecay:
    def test_idempotent(self):
        result = _result(55.5, 400)
        assert apply_decay(result, AS_OF) == apply_decay(result, AS_OF)

    def test_decayed_never_exceeds_total(self):
        for days in range(0, 1200, 50):
            decayed = apply_decay(_result(12.0, days), AS_OF)
            assert 0.0 <= decayed.decay_multiplier <= 1.0
            assert decayed.decayed_points <= 12.0

    def test_future_tournament_clamped(self, caplog):
        caplog.set_level(logging.WARNING, logger="pinball_rankings")
        decayed = apply_decay(_result(20.0, -3), AS_OF)
        assert decayed.age_in_days == 0
        assert decayed.decay_multiplier == 1.0
        assert any("after as_of" in m for m in caplog.messages)

    def test_accepts_dates_and_strings(self):
        result = ResultRecord(total_points=8.0, tournament_date=date(2023, 12, 1))
        decayed = apply_decay(result, "2025-01-01")
        assert decayed.age_in_days == 397
        assert decayed.decay_multiplier == 0.75

    def test_negative_points_rejected(self):
        with pytest.raises(ValidationError):
            apply_decay(_result(-1.0, 10), AS_OF)

    def test_event_helpers(self):
        assert is_event_active(AS_OF - timedelta(days=1000), AS_OF)
        assert not is_event_active(AS_OF - timedelta(days=1100), AS_OF)
        assert event_age_years(AS_OF - timedelta(days=730), AS_OF) == 2.0


class TestDecayFrame:
    """Test the vectorized decay over a results DataFrame."""

    def test_matches_single_result_decay(self):
        dates = [
            date(2024, 12, 31),
            date(2024, 6, 1),
            date(2023, 6, 1),
            date(2022, 6, 1),
            date(2020, 1, 1),
        ]
        frame = pl.DataFrame(
            {"total_points": [10.0, 20.0, 30.0, 40.0, 50.0], "tournament_date": dates}
        )
        decayed = decay_frame(frame, AS_OF)
        for row in decayed.iter_rows(named=True):
            expected = apply_decay(
                ResultRecord(row["total_points"], row["tournament_date"]), AS_OF
            )
            assert row["age_in_days"] == expected.age_in_days
            assert row["decay_multiplier"] == pytest.approx(expected.decay_multiplier)
            assert row["decayed_points"] == pytest.approx(expected.decayed_points)

    def test_linear_curve_frame(self):
        curve = LinearDecay(full_weight_days=0, max_age_days=100)
        frame = pl.DataFrame(
            {
                "total_points": [10.0, 10.0],
                "tournament_date": [
                    datetime(2024, 12, 7),
                    datetime(2024, 1, 1),
                ],
            }
        )
        decayed = decay_frame(frame, AS_OF, curve=curve)
        assert decayed["age_in_days"].to_list() == [25, 366]
        assert decayed["decay_multiplier"].to_list() == pytest.approx([0.75, 0.0])

    def test_future_rows_clamped(self, caplog):
        caplog.set_level(logging.WARNING, logger="pinball_rankings")
        frame = pl.DataFrame(
            {"total_points": [5.0], "tournament_date": [date(2025, 2, 1)]}
        )
        decayed = decay_frame(frame, AS_OF)
        assert decayed["age_in_days"].to_list() == [0]
        assert decayed["decayed_points"].to_list() == [5.0]
        assert any("dated after as_of" in m for m in caplog.messages)

    def test_missing_column(self):
        with pytest.raises(ValidationError):
            decay_frame(pl.DataFrame({"total_points": [1.0]}), AS_OF)
