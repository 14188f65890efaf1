"""
Unit Tests: Movement

Test cases:
- Comparison round per event status
- Up / down / new against the reconstructed ranking
- Everyone "same" without a comparison round
"""

from triviaboard.ranking import build_leaderboard, comparison_round
from triviaboard.ranking.movement import classify, ranks_as_of


def test_comparison_round_by_status():
    assert comparison_round("active", 2) == 2
    assert comparison_round("completed", 2) == 1
    assert comparison_round("archived", 3) == 2
    assert comparison_round("completed", 1) is None
    assert comparison_round("active", None) is None
    assert comparison_round("draft", 2) is None
    assert comparison_round("upcoming", 2) is None


def test_classify():
    assert classify(1, 2) == "up"
    assert classify(2, 1) == "down"
    assert classify(3, 3) == "same"
    assert classify(1, None) == "new"


def test_completed_event_compares_with_round_before_last(snapshot):
    movement = {r.team.id: r.movement for r in build_leaderboard(snapshot).rankings}

    # After round 1: Alpha 10, Beta 8; Gamma had not joined
    assert movement == {"beta": "up", "alpha": "down", "gamma": "new"}


def test_active_event_compares_with_last_completed_round(snapshot_factory):
    snapshot = snapshot_factory(status="active", current_round=3, round_count=3)
    movement = {r.team.id: r.movement for r in build_leaderboard(snapshot).rankings}

    # No round 3 scores yet, so standings match the end of round 2
    assert set(movement.values()) == {"same"}


def test_no_comparison_round_means_same(snapshot_factory):
    snapshot = snapshot_factory(status="active", current_round=1)
    leaderboard = build_leaderboard(snapshot)

    assert leaderboard.last_completed_round is None
    assert all(r.movement == "same" for r in leaderboard.rankings)


def test_ranks_as_of_ignores_later_rounds_and_teams(snapshot):
    ranks = ranks_as_of(1, snapshot.rounds, snapshot.teams, snapshot.scores)
    assert ranks == {"alpha": 1, "beta": 2}
