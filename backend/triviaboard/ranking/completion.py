"""Round completion tracking.

A round is completed when every team eligible for it (joined_round <= round)
has a score recorded. Teams that join mid-event carry no requirement for the
rounds before they joined.
"""

import logging
from collections.abc import Iterable

from triviaboard.ranking.models import EventSnapshot, EventStatus, Score, Team

logger = logging.getLogger(__name__)


class RoundCompletionTracker:
    """Answers which rounds are fully scored for one snapshot."""

    def __init__(
        self,
        round_numbers: Iterable[int],
        teams: Iterable[Team],
        scores: Iterable[Score],
    ):
        self.round_numbers = sorted(set(round_numbers))
        self.teams = list(teams)
        self._scored = {(s.team_id, s.round_number) for s in scores}

    @classmethod
    def from_snapshot(cls, snapshot: EventSnapshot) -> "RoundCompletionTracker":
        return cls(
            (r.round_number for r in snapshot.rounds or []),
            snapshot.teams or [],
            snapshot.scores or [],
        )

    def eligible_teams(self, round_number: int) -> list[Team]:
        """Teams that are expected to have a score for this round."""
        return [t for t in self.teams if t.joined_round <= round_number]

    def is_round_completed(self, round_number: int) -> bool:
        eligible = self.eligible_teams(round_number)
        # A round nobody could play is not completed
        if not eligible:
            return False
        return all((t.id, round_number) in self._scored for t in eligible)

    @property
    def completed_rounds(self) -> list[int]:
        """All completed round numbers, ascending."""
        return [r for r in self.round_numbers if self.is_round_completed(r)]

    def last_completed_round(
        self,
        status: EventStatus,
        current_round: int | None = None,
    ) -> int | None:
        """
        Round used for momentum comparisons.

        While an event is active this is the round just finished
        (current_round - 1), falling back to the greatest completed round
        below it when that round is still missing scores. For any other
        status it is simply the greatest completed round.
        """
        completed = self.completed_rounds

        if status != "active":
            return completed[-1] if completed else None

        if current_round is None:
            return None

        candidate = current_round - 1
        if candidate < 1:
            return None

        if self.is_round_completed(candidate):
            return candidate

        earlier = [r for r in completed if r < candidate]
        if earlier:
            logger.debug(
                f"Round {candidate} not fully scored, falling back to round {earlier[-1]}"
            )
            return earlier[-1]
        return None
