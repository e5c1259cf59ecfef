"""
Batched rating updates for finalized tournaments.

A tournament is one rating period: every participant is updated from the
same pre-tournament snapshot, so the order in which players are processed
never changes the outcome.
"""

from __future__ import annotations

from collections import OrderedDict
from contextlib import nullcontext
from datetime import datetime
from typing import Callable, Hashable, Iterable, Sequence

import numpy as np

from pinball_rankings.core.config import EngineConfig, GlickoConfig
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.logging import get_logger
from pinball_rankings.core.models import Match, PlayerState, Standing
from pinball_rankings.core.results import RatingUpdate
from pinball_rankings.core.time import (
    Clock,
    Timestamp,
    days_between,
    to_datetime,
)
from pinball_rankings.rating.glicko import apply_inactivity, glicko_update
from pinball_rankings.rating.locks import PlayerLockRegistry
from pinball_rankings.rating.simulate import simulate_tournament_matches

logger = get_logger(__name__)


def new_player_state(
    player_id: Hashable, config: GlickoConfig | None = None
) -> PlayerState:
    """Rating state of a player who has never been rated."""
    config = config or GlickoConfig()
    return PlayerState(
        player_id=player_id,
        rating=config.default_rating,
        rating_deviation=config.max_rd,
    )


def _snapshot(players: Iterable[PlayerState]) -> OrderedDict:
    snapshot: OrderedDict = OrderedDict()
    for player in players:
        if player.player_id in snapshot:
            raise ValidationError(
                f"Duplicate player ID in snapshot: {player.player_id!r}",
                field="player_id",
            )
        snapshot[player.player_id] = player
    return snapshot


def _unchanged(player: PlayerState) -> RatingUpdate:
    return RatingUpdate(
        player_id=player.player_id,
        rating=player.rating,
        rating_deviation=player.rating_deviation,
        event_count=player.event_count,
        is_rated=player.is_rated,
        previous_rating=player.rating,
        previous_rating_deviation=player.rating_deviation,
        matches_played=0,
        last_rating_update=player.last_rating_update,
        last_event_date=player.last_event_date,
    )


def _group_matches(matches: Iterable[Match], mirror: bool) -> OrderedDict:
    by_player: OrderedDict = OrderedDict()
    for match in matches:
        if not isinstance(match, Match):
            raise ValidationError(
                f"Expected Match, got {type(match).__name__}", field="matches"
            )
        listed = [match, match.mirrored()] if mirror else [match]
        for entry in listed:
            by_player.setdefault(entry.player_id, []).append(entry)
    return by_player


def _involved_ids(by_player: dict) -> set:
    involved = set(by_player)
    for entries in by_player.values():
        involved.update(entry.opponent_id for entry in entries)
    return involved


def update_ratings(
    players: Iterable[PlayerState],
    matches: Iterable[Match],
    as_of: Timestamp,
    *,
    config: EngineConfig | None = None,
    lock_registry: PlayerLockRegistry | None = None,
    mirror: bool = False,
) -> list[RatingUpdate]:
    """Update ratings after one tournament.

    Matches are listed from each subject's point of view; a match only
    updates its ``player_id``. Pass ``mirror=True`` when each pairing is
    listed once and should count for both sides.

    Args:
        players: Pre-tournament snapshot of known players.
        matches: Head-to-head outcomes of the tournament.
        as_of: Tournament date; drives inactivity RD growth.
        config: Engine configuration.
        lock_registry: When given, the locks of every involved player are
            held for the computation. Callers that load and persist state
            themselves should use ``RatingEngine.finalize`` instead, which
            keeps the locks across load, compute and persist.
        mirror: Also apply every match from the opponent's side.

    Returns:
        One update per snapshot player (unchanged if they played no match),
        followed by players first seen in ``matches``.

    Raises:
        ValidationError: On duplicate snapshot players, self-play or unknown
            outcomes.
    """
    config = (config or EngineConfig()).validate()
    glicko = config.glicko
    as_of = to_datetime(as_of)
    snapshot = _snapshot(players)
    by_player = _group_matches(matches, mirror)

    held = (
        nullcontext()
        if lock_registry is None
        else lock_registry.hold(_involved_ids(by_player))
    )
    with held:
        computed = {
            player_id: _update_player(
                snapshot.get(player_id),
                player_id,
                entries,
                snapshot,
                as_of,
                glicko,
            )
            for player_id, entries in by_player.items()
        }

    updates = [
        computed.get(player_id) or _unchanged(player)
        for player_id, player in snapshot.items()
    ]
    updates.extend(
        update
        for player_id, update in computed.items()
        if player_id not in snapshot
    )
    logger.debug(
        "Updated %d of %d players from %d match entries",
        len(computed),
        len(updates),
        sum(len(entries) for entries in by_player.values()),
    )
    return updates


def _update_player(
    player: PlayerState | None,
    player_id: Hashable,
    entries: Sequence[Match],
    snapshot: dict,
    as_of: datetime,
    config: GlickoConfig,
) -> RatingUpdate:
    if player is None:
        logger.info(
            "Player %r has no prior rating; starting from defaults", player_id
        )
        player = new_player_state(player_id, config)

    days_inactive = 0
    if player.last_event_date is not None:
        days_inactive = max(days_between(player.last_event_date, as_of), 0)
    rd = apply_inactivity(player.rating_deviation, days_inactive, config)

    opponent_ratings = np.empty(len(entries))
    opponent_rds = np.empty(len(entries))
    scores = np.empty(len(entries))
    for index, entry in enumerate(entries):
        opponent = snapshot.get(entry.opponent_id)
        if opponent is None:
            logger.warning(
                "Opponent %r of player %r not in snapshot; using default rating",
                entry.opponent_id,
                player_id,
            )
            opponent = new_player_state(entry.opponent_id, config)
        opponent_ratings[index] = opponent.rating
        opponent_rds[index] = opponent.rating_deviation
        scores[index] = entry.outcome.score

    rating, new_rd = glicko_update(
        player.rating, rd, opponent_ratings, opponent_rds, scores, config
    )
    event_count = player.event_count + 1
    return RatingUpdate(
        player_id=player_id,
        rating=rating,
        rating_deviation=new_rd,
        event_count=event_count,
        is_rated=player.is_rated or event_count >= config.rated_threshold,
        previous_rating=player.rating,
        previous_rating_deviation=player.rating_deviation,
        matches_played=len(entries),
        last_rating_update=as_of,
        last_event_date=as_of,
    )


class RatingEngine:
    """Rating updates with a shared configuration, clock and lock registry.

    One engine instance should be shared by every thread finalizing
    tournaments: ``finalize`` holds the per-player locks from loading the
    snapshot until the updates are persisted, so two tournaments sharing a
    player apply one after the other.

    Examples:
        >>> engine = RatingEngine()
        >>> updates = engine.finalize_standings(standings, repo.load, repo.save)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        lock_registry: PlayerLockRegistry | None = None,
    ) -> None:
        self.config = (config or EngineConfig()).validate()
        self.clock = clock or Clock()
        self.lock_registry = lock_registry or PlayerLockRegistry()

    def _as_of(self, as_of: Timestamp | None) -> Timestamp:
        return self.clock.now_datetime if as_of is None else as_of

    def update(
        self,
        players: Iterable[PlayerState],
        matches: Iterable[Match],
        as_of: Timestamp | None = None,
        *,
        mirror: bool = False,
    ) -> list[RatingUpdate]:
        """``update_ratings`` on a snapshot the caller already holds."""
        return update_ratings(
            players,
            matches,
            self._as_of(as_of),
            config=self.config,
            lock_registry=self.lock_registry,
            mirror=mirror,
        )

    def update_from_standings(
        self,
        players: Iterable[PlayerState],
        standings: Iterable[Standing],
        as_of: Timestamp | None = None,
    ) -> list[RatingUpdate]:
        """Simulate matches from final standings and update ratings."""
        matches = simulate_tournament_matches(
            standings, self.config.glicko.opponents_range
        )
        return self.update(players, matches, as_of)

    def finalize(
        self,
        matches: Iterable[Match],
        load: Callable[[list], Iterable[PlayerState]],
        persist: Callable[[list[RatingUpdate]], object],
        as_of: Timestamp | None = None,
        *,
        mirror: bool = False,
    ) -> list[RatingUpdate]:
        """Load, update and persist the players of one tournament.

        The locks of every involved player are held for the whole
        load, compute, persist sequence.

        Args:
            matches: Head-to-head outcomes of the tournament.
            load: Called with the sorted involved player ids; returns their
                current states (unknown players may be left out).
            persist: Called with the updates before the locks are released.
            as_of: Tournament date. Defaults to the engine clock.
            mirror: Also apply every match from the opponent's side.

        Returns:
            The persisted updates.
        """
        as_of = self._as_of(as_of)
        by_player = _group_matches(matches, mirror)
        player_ids = PlayerLockRegistry.acquisition_order(
            _involved_ids(by_player)
        )
        with self.lock_registry.hold(player_ids):
            players = list(load(player_ids))
            updates = update_ratings(
                players,
                [entry for entries in by_player.values() for entry in entries],
                as_of,
                config=self.config,
            )
            persist(updates)
        logger.debug(
            "Finalized tournament for %d players as of %s",
            len(player_ids),
            to_datetime(as_of).date().isoformat(),
        )
        return updates

    def finalize_standings(
        self,
        standings: Iterable[Standing],
        load: Callable[[list], Iterable[PlayerState]],
        persist: Callable[[list[RatingUpdate]], object],
        as_of: Timestamp | None = None,
    ) -> list[RatingUpdate]:
        """``finalize`` with matches simulated from final standings."""
        matches = simulate_tournament_matches(
            standings, self.config.glicko.opponents_range
        )
        return self.finalize(matches, load, persist, as_of)
