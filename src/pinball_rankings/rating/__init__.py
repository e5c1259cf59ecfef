"""Glicko-style player ratings."""

from pinball_rankings.rating.engine import (
    RatingEngine,
    new_player_state,
    update_ratings,
)
from pinball_rankings.rating.glicko import (
    apply_inactivity,
    glicko_update,
    is_provisional,
)
from pinball_rankings.rating.locks import PlayerLock, PlayerLockRegistry
from pinball_rankings.rating.simulate import simulate_tournament_matches

__all__ = [
    "RatingEngine",
    "new_player_state",
    "update_ratings",
    "apply_inactivity",
    "glicko_update",
    "is_provisional",
    "PlayerLock",
    "PlayerLockRegistry",
    "simulate_tournament_matches",
]
