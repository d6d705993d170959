from __future__ import annotations

import pytest

from app.core.errors import ForbiddenError
from app.services.ranking import RankingItem, assign_competition_ranks, compute_base_ranking, get_group_ranking
from app.services.ranking_cache import invalidate_ranking_cache

NOW = 1_700_000_000


@pytest.fixture
def scored(db):
    """Group 1 with three settled fixtures; nudging off."""
    for user_id, name in ((1, "alice"), (2, "bob"), (3, "carol")):
        db.user(user_id, name)
    db.group(1, creator_id=1, nudge_enabled=False)
    for user_id in (1, 2, 3):
        db.member(1, user_id)
    for fixture_id in (10, 11, 12):
        db.fixture(fixture_id, start_ts=NOW - 86400, state="FT", result="1:0")
        db.group_fixture(1, fixture_id)
    return db


def _by_user(items):
    return {item.user_id: item for item in items}


class TestCompetitionRanks:
    def test_correct_scores_break_point_ties(self):
        items = [
            RankingItem(rank=0, user_id=1, username="alice", total_points=10, correct_score_count=2),
            RankingItem(rank=0, user_id=2, username="bob", total_points=10, correct_score_count=3),
            RankingItem(rank=0, user_id=3, username="carol", total_points=7, correct_score_count=1),
        ]
        ranked = assign_competition_ranks(items)
        assert [(i.username, i.rank) for i in ranked] == [("bob", 1), ("alice", 2), ("carol", 3)]

    def test_full_ties_share_rank_and_skip(self):
        items = [
            RankingItem(rank=0, user_id=1, username="Zed", total_points=10),
            RankingItem(rank=0, user_id=2, username="amy", total_points=10),
            RankingItem(rank=0, user_id=3, username="carol", total_points=5),
        ]
        ranked = assign_competition_ranks(items)
        assert [i.rank for i in ranked] == [1, 1, 3]
        assert [i.username for i in ranked] == ["amy", "Zed", "carol"]

    def test_correct_outcomes_do_not_break_ties(self):
        items = [
            RankingItem(rank=0, user_id=1, username="a", total_points=4, correct_outcome_count=0),
            RankingItem(rank=0, user_id=2, username="b", total_points=4, correct_outcome_count=3),
        ]
        assert [i.rank for i in assign_competition_ranks(items)] == [1, 1]


class TestBaseRanking:
    def test_points_and_counts_from_predictions(self, engine, scored):
        # alice: 10 pts, 2 exact; bob: 10 pts, 3 exact; carol: 7 pts, 1 exact
        scored.prediction(1, 1, 1, points="5", correct_score=True, match_winner=True)
        scored.prediction(1, 2, 1, points="5", correct_score=True, match_winner=True)
        scored.prediction(1, 1, 2, points="4", correct_score=True, match_winner=True)
        scored.prediction(1, 2, 2, points="3", correct_score=True, match_winner=False)
        scored.prediction(1, 3, 2, points="3", correct_score=True, match_winner=False)
        scored.prediction(1, 1, 3, points="7", correct_score=True, match_winner=True)

        items = compute_base_ranking(engine, 1)
        assert [(i.username, i.rank, i.total_points) for i in items] == [
            ("bob", 1, 10),
            ("alice", 2, 10),
            ("carol", 3, 7),
        ]
        bob = _by_user(items)[2]
        assert bob.prediction_count == 3
        assert bob.correct_score_count == 3
        assert bob.correct_outcome_count == 1

    def test_member_without_predictions_gets_zero_row(self, engine, scored):
        scored.prediction(1, 1, 1, points="3")
        items = compute_base_ranking(engine, 1)
        assert len(items) == 3
        carol = _by_user(items)[3]
        assert carol.total_points == 0
        assert carol.prediction_count == 0
        assert carol.rank == 2
        assert _by_user(items)[2].rank == 2

    def test_malformed_points_count_as_zero(self, engine, scored):
        scored.prediction(1, 1, 1, points="abc")
        scored.prediction(1, 2, 1, points="4")
        scored.prediction(1, 3, 1, points=None)
        alice = _by_user(compute_base_ranking(engine, 1))[1]
        assert alice.total_points == 4
        assert alice.prediction_count == 3

    def test_left_members_are_excluded(self, engine, scored):
        scored.user(4, "dave")
        scored.member(1, 4, status="left")
        scored.prediction(1, 1, 4, points="9")
        assert 4 not in _by_user(compute_base_ranking(engine, 1))


class TestGroupRanking:
    def test_requires_membership(self, engine, scored):
        scored.user(9)
        with pytest.raises(ForbiddenError):
            get_group_ranking(engine, 1, 9, now=NOW)

    def test_nudge_fields_omitted_when_disabled(self, engine, scored):
        items = get_group_ranking(engine, 1, 1, now=NOW)
        for item in items:
            data = item.to_dict()
            assert "nudgeable" not in data
            assert "nudge_fixture_id" not in data
            assert "nudged_by_me" not in data
            assert set(data) == {
                "rank",
                "user_id",
                "username",
                "total_points",
                "prediction_count",
                "correct_score_count",
                "correct_outcome_count",
            }

    def test_nudge_enrichment(self, engine, league):
        # bob predicted the upcoming fixture, carol did not
        league.prediction(1, 1, 2)
        items = _by_user(get_group_ranking(engine, 1, 1, now=NOW))

        assert items[3].nudgeable is True
        assert items[3].nudge_fixture_id == 10
        assert items[3].nudged_by_me is False
        assert items[3].to_dict()["nudge_fixture_id"] == 10
        assert "nudgeable" not in items[2].to_dict()

    def test_cached_base_until_invalidated(self, engine, scored):
        first = get_group_ranking(engine, 1, 1, now=NOW)
        assert all(i.total_points == 0 for i in first)

        scored.prediction(1, 1, 3, points="6")
        cached = get_group_ranking(engine, 1, 1, now=NOW)
        assert _by_user(cached)[3].total_points == 0

        invalidate_ranking_cache([1])
        fresh = get_group_ranking(engine, 1, 1, now=NOW)
        assert _by_user(fresh)[3].total_points == 6
        assert fresh[0].user_id == 3

    def test_enrichment_does_not_leak_into_cache(self, engine, league):
        get_group_ranking(engine, 1, 1, now=NOW)
        # outside the window nobody is nudgeable, even though the base is cached
        later = get_group_ranking(engine, 1, 1, now=NOW + 3 * 86400)
        assert all(item.nudgeable is None for item in later)


class TestRankingFreshness:
    def test_member_who_left_drops_out(self, engine, scored):
        from app.services.groups import leave_group

        before = [i.user_id for i in get_group_ranking(engine, 1, 1, now=NOW)]
        leave_group(engine, 1, 3, now=NOW)
        after = [i.user_id for i in get_group_ranking(engine, 1, 1, now=NOW)]
        assert sorted(before) == [1, 2, 3]
        assert sorted(after) == [1, 2]

    def test_member_who_joined_appears(self, engine, scored):
        from app.services.groups import join_group

        get_group_ranking(engine, 1, 1, now=NOW)
        scored.user(4, "dave")
        join_group(engine, 1, 4, now=NOW)
        after = [i.user_id for i in get_group_ranking(engine, 1, 1, now=NOW)]
        assert sorted(after) == [1, 2, 3, 4]

    def test_write_during_compute_is_not_cached(self, engine, league, monkeypatch):
        import app.services.ranking as ranking_service
        from app.services.predictions import save_group_prediction

        original = ranking_service.compute_base_ranking

        def compute_then_write(eng, group_id):
            items = original(eng, group_id)
            save_group_prediction(eng, group_id, 10, 2, home=1, away=0, now=NOW)
            return items

        monkeypatch.setattr(ranking_service, "compute_base_ranking", compute_then_write)
        get_group_ranking(engine, 1, 1, now=NOW)
        monkeypatch.setattr(ranking_service, "compute_base_ranking", original)

        bob = _by_user(get_group_ranking(engine, 1, 1, now=NOW))[2]
        assert bob.prediction_count == 1
