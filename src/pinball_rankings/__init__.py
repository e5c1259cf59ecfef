"""Pinball tournament rankings and scoring engine."""

from __future__ import annotations

# Core functionality - Main API
from pinball_rankings.aggregate import recompute_rankings
from pinball_rankings.core.config import EngineConfig, load_config
from pinball_rankings.core.exceptions import (
    ConfigurationError,
    RankingError,
    SweepError,
    ValidationError,
)
from pinball_rankings.core.models import (
    Entrant,
    EventBooster,
    FieldEntrant,
    Match,
    MatchOutcome,
    PlayerStanding,
    PlayerState,
    ResultRecord,
    Standing,
)
from pinball_rankings.decay import DecaySweep, FrameResultStore, apply_decay
from pinball_rankings.rating import (
    RatingEngine,
    simulate_tournament_matches,
    update_ratings,
)
from pinball_rankings.scoring import compute_tournament_value, distribute_points

__version__ = "0.1.0"

__all__ = [
    # Core API - Essential functions
    "compute_tournament_value",
    "distribute_points",
    "apply_decay",
    "update_ratings",
    "recompute_rankings",
    # Engines
    "DecaySweep",
    "FrameResultStore",
    "RatingEngine",
    "simulate_tournament_matches",
    # Models
    "Entrant",
    "EventBooster",
    "FieldEntrant",
    "Match",
    "MatchOutcome",
    "PlayerStanding",
    "PlayerState",
    "ResultRecord",
    "Standing",
    # Configuration
    "EngineConfig",
    "load_config",
    # Errors
    "RankingError",
    "ValidationError",
    "ConfigurationError",
    "SweepError",
    # Version
    "__version__",
]

# Note: For advanced functionality, import directly from submodules:
# - pinball_rankings.scoring: Value helpers, efficiency statistics
# - pinball_rankings.decay: Decay curves and the vectorized decay frame
# - pinball_rankings.rating: Glicko math and per-player locks
