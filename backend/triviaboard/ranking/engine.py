"""Ranking engine: snapshot -> ordered team rankings.

Pure and stateless. Order is total: descending total score, then ascending
team name, then team id so that even identically named teams never share a
position.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from triviaboard.ranking.models import Round, RoundScore, Score, Team, TeamRanking

ZERO = Decimal("0")
CENT = Decimal("0.01")


def ranking_sort_key(team: Team, total: Decimal) -> tuple:
    """Sort key shared by the live ranking and reconstructed past rankings."""
    return (-total, team.name, team.id)


def rank_totals(teams: Iterable[Team], totals: Mapping[str, Decimal]) -> dict[str, int]:
    """Assign 1-based ranks (no shared ranks) from per-team totals."""
    ordered = sorted(teams, key=lambda t: ranking_sort_key(t, totals.get(t.id, ZERO)))
    return {team.id: position for position, team in enumerate(ordered, 1)}


def points_by_cell(scores: Iterable[Score]) -> dict[tuple[str, int], Decimal]:
    """Index score points by (team_id, round_number)."""
    return {(s.team_id, s.round_number): s.points for s in scores}


def _average(
    team: Team,
    points: Mapping[int, Decimal],
    round_numbers: list[int],
    last_completed_round: int | None,
) -> Decimal:
    if last_completed_round is None:
        return ZERO

    counted = [
        r for r in round_numbers
        if team.joined_round <= r <= last_completed_round
    ]
    if not counted:
        return ZERO

    total = sum((points.get(r, ZERO) for r in counted), ZERO)
    return (total / len(counted)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_rankings(
    rounds: list[Round],
    teams: list[Team],
    scores: list[Score],
    last_completed_round: int | None,
) -> list[TeamRanking]:
    """
    Build ranked leaderboard rows.

    Every defined round gets an entry per team (0 when no score exists).
    Momentum fields are taken relative to last_completed_round; the running
    average only counts rounds the team was eligible for and that are
    already completed.

    Args:
        rounds: Round definitions (any order)
        teams: Registered teams
        scores: Recorded scores, at most one per (team, round)
        last_completed_round: Output of RoundCompletionTracker

    Returns:
        Rankings ordered by rank, movement left as "same"
    """
    round_numbers = sorted({r.round_number for r in rounds})
    cells = points_by_cell(scores)

    rankings: list[TeamRanking] = []
    for team in teams:
        points = {r: cells.get((team.id, r), ZERO) for r in round_numbers}
        round_scores = [RoundScore(round_number=r, points=points[r]) for r in round_numbers]
        total = sum(points.values(), ZERO)

        if last_completed_round is not None:
            last_round_points = points.get(last_completed_round, ZERO)
            previous_round_points = (
                points.get(last_completed_round - 1, ZERO)
                if last_completed_round > 1
                else ZERO
            )
            recent_delta = last_round_points - previous_round_points
        else:
            last_round_points = previous_round_points = recent_delta = ZERO

        rankings.append(
            TeamRanking(
                team=team,
                total_score=total,
                rank=0,
                round_scores=round_scores,
                last_round_points=last_round_points,
                previous_round_points=previous_round_points,
                recent_delta=recent_delta,
                average_score=_average(team, points, round_numbers, last_completed_round),
            )
        )

    rankings.sort(key=lambda r: ranking_sort_key(r.team, r.total_score))
    for position, ranking in enumerate(rankings, 1):
        ranking.rank = position

    return rankings
