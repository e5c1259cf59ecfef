"""
Glicko rating math.

Each player carries a rating and a rating deviation (RD) expressing how sure
we are of that rating. New and inactive players have a high RD and move
quickly; regulars have a low RD and move slowly.

References:
    Glickman, M. E. "The Glicko system" (1995).
"""

from __future__ import annotations

import math

import numpy as np

from pinball_rankings.core.config import GlickoConfig


def g(rd: np.ndarray | float, q: float) -> np.ndarray:
    """Attenuation of an opponent's weight by their RD.

    g(RD) = 1 / sqrt(1 + 3 q^2 RD^2 / pi^2)
    """
    rd = np.asarray(rd, dtype=float)
    return 1.0 / np.sqrt(1.0 + 3.0 * q**2 * rd**2 / math.pi**2)


def expected_score(
    rating: float,
    opponent_ratings: np.ndarray,
    opponent_rds: np.ndarray,
    q: float,
) -> np.ndarray:
    """E = 1 / (1 + 10^(-g(RD_j) (r - r_j) / 400))"""
    opponent_ratings = np.asarray(opponent_ratings, dtype=float)
    exponent = -g(opponent_rds, q) * (rating - opponent_ratings) / 400.0
    return 1.0 / (1.0 + np.power(10.0, exponent))


def apply_inactivity(
    rd: float, days_inactive: float, config: GlickoConfig | None = None
) -> float:
    """Grow RD by the configured amount per inactive day, capped at max RD."""
    config = config or GlickoConfig()
    grown = rd + max(days_inactive, 0) * config.rd_increase_per_day
    return min(grown, config.max_rd)


def is_provisional(event_count: int, config: GlickoConfig | None = None) -> bool:
    """Whether a player has too few events for a trusted rating."""
    config = config or GlickoConfig()
    return event_count < config.rated_threshold


def glicko_update(
    rating: float,
    rd: float,
    opponent_ratings: np.ndarray,
    opponent_rds: np.ndarray,
    scores: np.ndarray,
    config: GlickoConfig | None = None,
) -> tuple[float, float]:
    """One rating period for a single player.

    Args:
        rating: Rating before the period.
        rd: RD before the period, after inactivity growth.
        opponent_ratings: Opponent ratings from the pre-period snapshot.
        opponent_rds: Opponent RDs from the pre-period snapshot.
        scores: 1.0 win, 0.5 tie, 0.0 loss for each match.
        config: Glicko parameters.

    Returns:
        (new rating, new RD) with the RD clamped to [min_rd, max_rd].
    """
    config = config or GlickoConfig()
    scores = np.asarray(scores, dtype=float)
    if scores.size == 0:
        return rating, rd

    q = config.q
    g_values = g(opponent_rds, q)
    expected = expected_score(rating, opponent_ratings, opponent_rds, q)

    # 1 / d^2; zero only when every expected score saturates
    inverse_d_squared = q**2 * float(
        np.sum(g_values**2 * expected * (1.0 - expected))
    )

    precision = 1.0 / rd**2 + inverse_d_squared
    new_rating = rating + (q / precision) * float(
        np.sum(g_values * (scores - expected))
    )
    new_rd = math.sqrt(1.0 / precision)
    new_rd = max(config.min_rd, min(new_rd, config.max_rd))
    return new_rating, new_rd
