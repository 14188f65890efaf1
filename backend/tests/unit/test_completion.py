"""
Unit Tests: Round Completion

Test cases:
- Late joiners carry no requirement for earlier rounds
- Rounds nobody is eligible for are never complete
- Last completed round for active and finished events
"""

from decimal import Decimal

from triviaboard.ranking import RoundCompletionTracker
from triviaboard.ranking.models import Score, Team


def _tracker(scores, teams=None, rounds=(1, 2, 3)):
    teams = teams or [Team(id="a", name="A"), Team(id="b", name="B", joined_round=2)]
    return RoundCompletionTracker(
        rounds,
        teams,
        [Score(team_id=t, round_number=r, points=Decimal("1")) for t, r in scores],
    )


def test_late_joiner_not_required_for_earlier_rounds():
    tracker = _tracker([("a", 1)])

    assert tracker.is_round_completed(1)
    assert not tracker.is_round_completed(2)
    assert [t.id for t in tracker.eligible_teams(1)] == ["a"]
    assert [t.id for t in tracker.eligible_teams(2)] == ["a", "b"]


def test_round_without_eligible_teams_is_not_completed():
    tracker = _tracker([], teams=[Team(id="c", name="C", joined_round=3)])

    assert not tracker.is_round_completed(1)
    assert tracker.completed_rounds == []


def test_completed_rounds_from_snapshot(snapshot):
    tracker = RoundCompletionTracker.from_snapshot(snapshot)
    assert tracker.completed_rounds == [1, 2]


def test_finished_event_uses_greatest_completed_round():
    tracker = _tracker([("a", 1), ("a", 2), ("b", 2)])

    assert tracker.last_completed_round("completed") == 2
    assert tracker.last_completed_round("archived", current_round=1) == 2


def test_finished_event_with_nothing_completed():
    assert _tracker([]).last_completed_round("completed") is None


def test_active_event_uses_round_before_current():
    tracker = _tracker([("a", 1), ("a", 2), ("b", 2)])
    assert tracker.last_completed_round("active", current_round=3) == 2


def test_active_event_falls_back_to_earlier_completed_round():
    # Round 2 is missing b's score
    tracker = _tracker([("a", 1), ("a", 2)])
    assert tracker.last_completed_round("active", current_round=3) == 1


def test_active_event_without_candidate_round():
    tracker = _tracker([("a", 1)])

    assert tracker.last_completed_round("active", current_round=1) is None
    assert tracker.last_completed_round("active", current_round=None) is None


def test_active_event_ignores_completed_rounds_after_candidate():
    tracker = _tracker([("a", 3), ("b", 3)])
    assert tracker.last_completed_round("active", current_round=2) is None


def test_active_event_in_round_four():
    rounds = (1, 2, 3, 4)
    full = [("a", 1), ("a", 2), ("b", 2), ("a", 3), ("b", 3)]

    assert _tracker(full, rounds=rounds).last_completed_round("active", current_round=4) == 3
    # Round 3 is missing b's score
    assert _tracker(full[:-1], rounds=rounds).last_completed_round("active", current_round=4) == 2
