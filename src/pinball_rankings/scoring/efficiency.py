"""Per-player efficiency statistics.

Efficiency is the share of available points a player actually collected:
points earned divided by First-Place Value. Only events still carrying
weight (decay multiplier above zero) are considered.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np

from pinball_rankings.core.constants import TOP_EVENTS_COUNT
from pinball_rankings.scoring.distribution import efficiency as event_efficiency

TREND_THRESHOLD = 5.0
DEFAULT_TREND_WINDOW = 10


@dataclass(frozen=True)
class PlayerEvent:
    """One of a player's scored events."""

    points_earned: float
    first_place_value: float
    decay_multiplier: float
    decayed_points: float
    date: datetime


@dataclass(frozen=True)
class EfficiencyTrend:
    overall_efficiency: float
    recent_efficiency: float
    trend: str  # "improving", "declining" or "stable"


@dataclass(frozen=True)
class EfficiencyStats:
    overall: float = 0.0
    top_n: float = 0.0
    best: float = 0.0
    worst: float = 0.0
    average: float = 0.0
    median: float = 0.0


def _active(events: Iterable[PlayerEvent]) -> list[PlayerEvent]:
    return [event for event in events if event.decay_multiplier > 0]


def _ratio(points: Sequence[float], values: Sequence[float]) -> float:
    available = float(np.sum(values)) if len(values) else 0.0
    if available == 0:
        return 0.0
    return float(np.sum(points)) / available * 100.0


def overall_efficiency(events: Iterable[PlayerEvent]) -> float:
    """Total points earned over total First-Place Value, as a percentage."""
    active = _active(events)
    return _ratio(
        [e.points_earned for e in active], [e.first_place_value for e in active]
    )


def top_n_efficiency(
    events: Iterable[PlayerEvent], top_n: int = TOP_EVENTS_COUNT
) -> float:
    """Overall efficiency restricted to the player's best ``top_n`` events."""
    best = sorted(_active(events), key=lambda e: e.points_earned, reverse=True)
    return overall_efficiency(best[:top_n])


def decayed_efficiency(events: Iterable[PlayerEvent]) -> float:
    """Like ``overall_efficiency`` but using decayed points."""
    active = _active(events)
    return _ratio(
        [e.decayed_points for e in active], [e.first_place_value for e in active]
    )


def efficiency_trend(
    events: Iterable[PlayerEvent], window_size: int = DEFAULT_TREND_WINDOW
) -> EfficiencyTrend:
    """Compare the most recent ``window_size`` events to the whole history.

    A difference under 5 percentage points either way counts as stable.
    """
    ordered = sorted(_active(events), key=lambda e: e.date, reverse=True)
    overall = overall_efficiency(ordered)
    recent = overall_efficiency(ordered[:window_size])
    difference = recent - overall
    if abs(difference) < TREND_THRESHOLD:
        trend = "stable"
    elif difference > 0:
        trend = "improving"
    else:
        trend = "declining"
    return EfficiencyTrend(
        overall_efficiency=overall, recent_efficiency=recent, trend=trend
    )


def efficiency_stats(
    events: Iterable[PlayerEvent], top_n: int = TOP_EVENTS_COUNT
) -> EfficiencyStats:
    """Summary efficiency statistics over a player's active events."""
    active = _active(events)
    if not active:
        return EfficiencyStats()

    per_event = np.array(
        [event_efficiency(e.points_earned, e.first_place_value) for e in active]
    )
    return EfficiencyStats(
        overall=overall_efficiency(active),
        top_n=top_n_efficiency(active, top_n),
        best=float(per_event.max()),
        worst=float(per_event.min()),
        average=float(per_event.mean()),
        median=float(np.median(per_event)),
    )
