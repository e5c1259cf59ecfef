"""
Policy constants for tournament valuation, point distribution, decay and
ratings.

This module centralizes all default parameters used by the scoring, decay,
rating and aggregation components so they can be tuned in one place. Every
value here is a default; callers override them through
``pinball_rankings.core.config``.
"""

import math

# =============================================================================
# Base Value Parameters
# =============================================================================

# Points added per rated entrant
BASE_POINTS_PER_RATED_PLAYER: float = 0.5

# Base value cap (reached at 64 rated entrants)
MAX_BASE_VALUE: float = 32.0

# Counted events needed before a player is rated
RATED_PLAYER_THRESHOLD: int = 5

# =============================================================================
# Tournament Value Adjustment (TVA) Parameters
# =============================================================================

# Rating TVA: contribution = rating * coefficient - offset
RATING_TVA_COEFFICIENT: float = 0.000546875
RATING_TVA_OFFSET: float = 0.703125
MAX_RATING_TVA: float = 25.0

# Ranking TVA: contribution = ln(rank) * coefficient + offset
RANKING_TVA_COEFFICIENT: float = -0.211675054
RANKING_TVA_OFFSET: float = 1.459827968
MAX_RANKING_TVA: float = 50.0

# Combined TVA cap
MAX_TOTAL_TVA: float = 75.0

# Only the strongest entrants count toward either TVA component
TVA_MAX_PLAYERS_CONSIDERED: int = 64

# =============================================================================
# Event Booster Multipliers
# =============================================================================

BOOSTER_NONE: float = 1.0
BOOSTER_CERTIFIED: float = 1.25
BOOSTER_CERTIFIED_PLUS: float = 1.5
BOOSTER_CHAMPIONSHIP_SERIES: float = 1.75
BOOSTER_MAJOR: float = 2.0

# =============================================================================
# Point Distribution Parameters
# =============================================================================

# Share of first-place value paid out linearly across the whole field
LINEAR_SHARE: float = 0.1

# Share of first-place value paid out on the steep dynamic curve
DYNAMIC_SHARE: float = 0.9

# Dynamic curve: (1 - ratio ** POSITION_EXPONENT) ** VALUE_EXPONENT
DYNAMIC_POSITION_EXPONENT: float = 0.7
DYNAMIC_VALUE_EXPONENT: float = 3.0

# Dynamic curve stretches over half the rated field, capped here
MAX_DYNAMIC_PLAYERS: int = 64

# =============================================================================
# Time Decay Parameters
# =============================================================================

DAYS_PER_YEAR: int = 365

# Step curve: (age threshold in years, multiplier from that age on)
DEFAULT_DECAY_STEPS: tuple[tuple[float, float], ...] = (
    (0.0, 1.0),
    (1.0, 0.75),
    (2.0, 0.5),
    (3.0, 0.0),
)

# Linear curve defaults
DEFAULT_FULL_WEIGHT_DAYS: int = 365
DEFAULT_MAX_AGE_DAYS: int = 3 * 365

# =============================================================================
# Rating (Glicko) Parameters
# =============================================================================

DEFAULT_RATING: float = 1300.0
MIN_RATING_DEVIATION: float = 10.0
MAX_RATING_DEVIATION: float = 200.0
RD_INCREASE_PER_DAY: float = 0.3
OPPONENTS_RANGE: int = 32
GLICKO_Q: float = math.log(10.0) / 400.0

# Outcome scores
WIN_SCORE: float = 1.0
TIE_SCORE: float = 0.5
LOSS_SCORE: float = 0.0

# =============================================================================
# Ranking Parameters
# =============================================================================

# Only a player's best results count toward their ranking total
TOP_EVENTS_COUNT: int = 15

# Events needed before a player receives a rank position
MIN_EVENTS_FOR_RANKING: int = RATED_PLAYER_THRESHOLD

SECONDS_PER_DAY: float = 86_400.0
