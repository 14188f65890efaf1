"""Movement classification against a reconstructed earlier ranking."""

import logging
from decimal import Decimal

from triviaboard.ranking.engine import ZERO, rank_totals
from triviaboard.ranking.models import EventStatus, Movement, Round, Score, Team, TeamRanking

logger = logging.getLogger(__name__)


def comparison_round(status: EventStatus, last_completed_round: int | None) -> int | None:
    """
    Round whose cumulative standings are compared against the current ones.

    Active events compare against the last completed round. Finished events
    (completed or archived) compare against the round before it, so the final
    board shows how the last round reshuffled the field.
    """
    if last_completed_round is None:
        return None
    if status == "active":
        return last_completed_round
    if status in ("completed", "archived"):
        return last_completed_round - 1 if last_completed_round > 1 else None
    return None


def ranks_as_of(
    round_number: int,
    rounds: list[Round],
    teams: list[Team],
    scores: list[Score],
) -> dict[str, int]:
    """Re-rank using only scores up to round_number.

    Teams that had not joined yet by that round are left out.
    """
    defined = {r.round_number for r in rounds if r.round_number <= round_number}
    present = [t for t in teams if t.joined_round <= round_number]
    present_ids = {t.id for t in present}

    totals: dict[str, Decimal] = {t.id: ZERO for t in present}
    for score in scores:
        if score.team_id in present_ids and score.round_number in defined:
            totals[score.team_id] += score.points

    return rank_totals(present, totals)


def classify(current_rank: int, previous_rank: int | None) -> Movement:
    if previous_rank is None:
        return "new"
    if current_rank < previous_rank:
        return "up"
    if current_rank > previous_rank:
        return "down"
    return "same"


def apply_movement(
    rankings: list[TeamRanking],
    status: EventStatus,
    last_completed_round: int | None,
    rounds: list[Round],
    teams: list[Team],
    scores: list[Score],
) -> list[TeamRanking]:
    """Tag every ranking with up/down/same/new in place and return them."""
    compare_to = comparison_round(status, last_completed_round)

    if compare_to is None:
        for ranking in rankings:
            ranking.movement = "same"
        return rankings

    previous = ranks_as_of(compare_to, rounds, teams, scores)
    for ranking in rankings:
        ranking.movement = classify(ranking.rank, previous.get(ranking.team.id))

    logger.debug(f"Classified movement against round {compare_to}")
    return rankings
