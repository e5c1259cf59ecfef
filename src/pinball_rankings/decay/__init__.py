"""Time decay of awarded points."""

from pinball_rankings.decay.curve import (
    DecayCurve,
    LinearDecay,
    StepDecay,
    curve_from_config,
    get_decay_curve,
)
from pinball_rankings.decay.engine import (
    apply_decay,
    decay_frame,
    event_age_years,
    is_event_active,
)
from pinball_rankings.decay.store import FrameResultStore
from pinball_rankings.decay.sweep import DecaySweep

__all__ = [
    "DecayCurve",
    "LinearDecay",
    "StepDecay",
    "curve_from_config",
    "get_decay_curve",
    "apply_decay",
    "decay_frame",
    "event_age_years",
    "is_event_active",
    "FrameResultStore",
    "DecaySweep",
]
