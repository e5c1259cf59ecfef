"""Core components shared by the scoring, decay, rating and ranking engines."""

from pinball_rankings.core.config import (
    BaseValueConfig,
    BoosterConfig,
    DecayConfig,
    DistributionConfig,
    EngineConfig,
    GlickoConfig,
    RankingConfig,
    TvaConfig,
    load_config,
)
from pinball_rankings.core.exceptions import (
    ConfigurationError,
    RankingError,
    SweepError,
    ValidationError,
)
from pinball_rankings.core.logging import get_logger, log_timing, setup_logging
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
from pinball_rankings.core.protocols import ResultStore
from pinball_rankings.core.results import (
    DecayResult,
    PointAward,
    RankingOrder,
    RatingUpdate,
    SweepReport,
    TournamentValue,
)
from pinball_rankings.core.time import Clock, days_between, to_datetime

__all__ = [
    # Config
    "BaseValueConfig",
    "BoosterConfig",
    "DecayConfig",
    "DistributionConfig",
    "EngineConfig",
    "GlickoConfig",
    "RankingConfig",
    "TvaConfig",
    "load_config",
    # Exceptions
    "ConfigurationError",
    "RankingError",
    "SweepError",
    "ValidationError",
    # Logging
    "get_logger",
    "log_timing",
    "setup_logging",
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
    # Protocols
    "ResultStore",
    # Results
    "DecayResult",
    "PointAward",
    "RankingOrder",
    "RatingUpdate",
    "SweepReport",
    "TournamentValue",
    # Time
    "Clock",
    "days_between",
    "to_datetime",
]
