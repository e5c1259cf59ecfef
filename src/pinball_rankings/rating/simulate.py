"""Turn final standings into head-to-head outcomes for the rating engine."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from pinball_rankings.core.constants import OPPONENTS_RANGE
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.models import Match, MatchOutcome, Standing


def simulate_tournament_matches(
    standings: Iterable[Standing],
    opponents_range: int = OPPONENTS_RANGE,
) -> list[Match]:
    """Simulate pairwise matches from finishing positions.

    Every player is matched against up to ``opponents_range`` neighbours
    above and below in the standings: a better finish is a win, a worse
    finish a loss and an equal position a tie. Matches are produced from both
    sides, so each pairing appears once per participant.

    Args:
        standings: Final positions.
        opponents_range: Neighbours considered on each side.

    Returns:
        Matches ordered by the subject's standing.

    Raises:
        ValidationError: On duplicate players or a range below 1.
    """
    if opponents_range < 1:
        raise ValidationError(
            "opponents_range must be at least 1", field="opponents_range"
        )
    ordered = sorted(standings, key=lambda s: s.position)
    duplicates = [
        pid for pid, n in Counter(s.player_id for s in ordered).items() if n > 1
    ]
    if duplicates:
        raise ValidationError(
            f"Duplicate player IDs found: {duplicates}", field="player_id"
        )

    matches: list[Match] = []
    for index, standing in enumerate(ordered):
        start = max(0, index - opponents_range)
        stop = min(len(ordered), index + opponents_range + 1)
        for other in ordered[start:stop]:
            if other.player_id == standing.player_id:
                continue
            if other.position < standing.position:
                outcome = MatchOutcome.LOSS
            elif other.position == standing.position:
                outcome = MatchOutcome.TIE
            else:
                outcome = MatchOutcome.WIN
            matches.append(
                Match(
                    player_id=standing.player_id,
                    opponent_id=other.player_id,
                    outcome=outcome,
                    position=standing.position,
                )
            )
    return matches
