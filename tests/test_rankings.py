"""Tests for the ranking aggregator."""

from datetime import date, datetime, timezone

import polars as pl
import pytest

from pinball_rankings.aggregate import (
    aggregate_player_points,
    apply_rankings,
    recompute_rankings,
    standings_from_frame,
)
from pinball_rankings.core.exceptions import ValidationError
from pinball_rankings.core.models import Match, PlayerStanding, PlayerState
from pinball_rankings.rating import update_ratings


def _standing(pid, points, rating=1500.0, rated=True, events=5, last=None):
    return PlayerStanding(
        player_id=pid,
        decayed_points_sum=points,
        rating=rating,
        is_rated=rated,
        event_count=events,
        last_event_date=last,
    )


class TestRecomputeRankings:
    """Test the rank list and the rating list."""

    def test_orders_by_decayed_points(self):
        order = recompute_rankings(
            [_standing("a", 10.0), _standing("b", 30.0), _standing("c", 20.0)]
        )
        assert order.rank_order == ["b", "c", "a"]
        assert order.ranking_of("b") == 1
        assert order.ranking_of("a") == 3

    def test_ties_broken_by_recency_then_id(self):
        recent = datetime(2024, 12, 1, tzinfo=timezone.utc)
        older = datetime(2024, 6, 1, tzinfo=timezone.utc)
        order = recompute_rankings(
            [
                _standing("d", 50.0, last=None),
                _standing("c", 50.0, last=older),
                _standing("b", 50.0, last=recent),
                _standing("a", 50.0, last=older),
            ]
        )
        assert order.rank_order == ["b", "a", "c", "d"]

    def test_ineligible_players_unranked(self):
        order = recompute_rankings(
            [
                _standing("veteran", 10.0),
                _standing("newcomer", 99.0, rated=False, events=4),
            ]
        )
        assert order.rank_order == ["veteran"]
        assert order.ranking_of("newcomer") is None
        assert "newcomer" in order.rankings

    def test_missing_event_count_falls_back_to_rated_flag(self):
        order = recompute_rankings(
            [
                _standing("a", 5.0, rated=True, events=None),
                _standing("b", 9.0, rated=False, events=None),
            ]
        )
        assert order.rank_order == ["a"]

    def test_rating_list(self):
        order = recompute_rankings(
            [
                _standing("a", 1.0, rating=1600.0),
                _standing("b", 2.0, rating=1800.0),
                _standing("c", 3.0, rating=1600.0),
                _standing("d", 4.0, rating=2000.0, rated=False),
            ]
        )
        assert order.rating_order == ["b", "a", "c"]

    def test_deterministic(self):
        players = [_standing(pid, float(i % 3)) for i, pid in enumerate("zyxwvu")]
        first = recompute_rankings(players)
        second = recompute_rankings(list(reversed(players)))
        assert first == second

    def test_duplicate_players(self):
        with pytest.raises(ValidationError):
            recompute_rankings([_standing("a", 1.0), _standing("a", 2.0)])

    def test_to_dataframe(self):
        order = recompute_rankings(
            [_standing("a", 2.0), _standing("b", 1.0, rated=False, events=1)]
        )
        frame = order.to_dataframe()
        rows = {r["player_id"]: r for r in frame.iter_rows(named=True)}
        assert rows["a"]["ranking"] == 1
        assert rows["b"]["ranking"] is None
        assert rows["b"]["rating_position"] is None


class TestRatedTransition:
    def test_fifth_event_earns_ranking(self):
        """A provisional player's fifth tournament makes them rated and ranked."""
        newcomer = PlayerState("new", event_count=4)
        veteran = PlayerState("vet", rating=1600.0, event_count=20, is_rated=True)
        as_of = datetime(2025, 1, 1, tzinfo=timezone.utc)

        before = recompute_rankings(
            [
                PlayerStanding("new", 40.0, newcomer.rating, False, 4),
                PlayerStanding("vet", 30.0, veteran.rating, True, 20),
            ]
        )
        assert before.ranking_of("new") is None

        updates = {
            u.player_id: u
            for u in update_ratings(
                [newcomer, veteran], [Match("new", "vet", "win")], as_of
            )
        }
        after = recompute_rankings(
            [
                PlayerStanding(
                    "new", 40.0, updates["new"].rating, updates["new"].is_rated, 5
                ),
                PlayerStanding(
                    "vet", 30.0, updates["vet"].rating, updates["vet"].is_rated, 20
                ),
            ]
        )
        assert updates["new"].is_rated
        assert after.ranking_of("new") == 1

        refreshed = apply_rankings(
            [updates["new"].to_player_state(), updates["vet"].to_player_state()],
            after,
        )
        assert [p.ranking for p in refreshed] == [1, 2]


class TestAggregatePlayerPoints:
    def test_top_events_only(self):
        frame = pl.DataFrame(
            {
                "player_id": [1] * 20 + [2],
                "decayed_points": [float(p) for p in range(1, 21)] + [7.0],
                "tournament_date": [date(2024, 1, d) for d in range(1, 22)],
            }
        )
        points = aggregate_player_points(frame)
        rows = {r["player_id"]: r for r in points.iter_rows(named=True)}
        assert rows[1]["decayed_points_sum"] == pytest.approx(195.0)
        assert rows[1]["event_count"] == 20
        assert rows[1]["last_event_date"] == date(2024, 1, 20)
        assert rows[2]["decayed_points_sum"] == pytest.approx(7.0)

    def test_custom_top_n(self):
        frame = pl.DataFrame(
            {
                "player_id": [1, 1, 1],
                "decayed_points": [5.0, 1.0, 3.0],
                "tournament_date": [date(2024, 1, 1)] * 3,
            }
        )
        points = aggregate_player_points(frame, top_n=2)
        assert points["decayed_points_sum"].to_list() == [8.0]

    def test_missing_columns(self):
        with pytest.raises(ValidationError):
            aggregate_player_points(pl.DataFrame({"player_id": [1]}))

    def test_standings_from_frame(self):
        points = pl.DataFrame(
            {
                "player_id": [1, 2],
                "decayed_points_sum": [10.0, 4.0],
                "event_count": [3, 6],
                "last_event_date": [date(2024, 5, 1), date(2024, 7, 1)],
            }
        )
        players = pl.DataFrame(
            {
                "player_id": [1, 2, 3],
                "rating": [1500.0, 1400.0, 1300.0],
                "is_rated": [True, True, False],
                "event_count": [8, None, 0],
            }
        )
        standings = {s.player_id: s for s in standings_from_frame(points, players)}
        assert standings[1].event_count == 8
        assert standings[2].event_count == 6
        assert standings[3].decayed_points_sum == 0.0
        assert standings[3].last_event_date is None

    def test_expired_and_opted_out_results_not_counted(self):
        frame = pl.DataFrame(
            {
                "player_id": [7] * 5 + [8] * 6,
                "decayed_points": [0.0] * 5 + [4.0] * 5 + [0.0],
                "decay_multiplier": [0.0] * 5 + [1.0] * 6,
                "opted_out": [False] * 10 + [True],
                "tournament_date": [date(2019, 1, d) for d in range(1, 6)]
                + [date(2024, 6, d) for d in range(1, 7)],
            }
        )
        points = aggregate_player_points(frame)
        rows = {r["player_id"]: r for r in points.iter_rows(named=True)}
        assert rows[7]["event_count"] == 0
        assert rows[8]["event_count"] == 5

        players = pl.DataFrame(
            {"player_id": [7, 8], "rating": [1500.0, 1400.0], "is_rated": [True, True]}
        )
        order = recompute_rankings(standings_from_frame(points, players))
        assert order.ranking_of(7) is None
        assert order.ranking_of(8) == 1
