"""Narrative highlights and per-round summary."""

from triviaboard.ranking.completion import RoundCompletionTracker
from triviaboard.ranking.models import (
    Event,
    Highlights,
    LeaderHighlight,
    Round,
    RoundHeroHighlight,
    RoundStatus,
    RoundSummary,
    Score,
    SurgingHighlight,
    Team,
    TeamRanking,
    TightRaceHighlight,
)


def leader_highlight(rankings: list[TeamRanking]) -> LeaderHighlight | None:
    if not rankings:
        return None
    leader = rankings[0]
    lead = leader.total_score - rankings[1].total_score if len(rankings) > 1 else None
    return LeaderHighlight(team=leader.team, total=leader.total_score, lead_over_next=lead)


def surging_highlight(
    rankings: list[TeamRanking],
    last_completed_round: int | None,
) -> SurgingHighlight | None:
    """Team with the biggest positive swing into the last completed round."""
    if last_completed_round is None:
        return None

    best: TeamRanking | None = None
    for ranking in rankings:
        if ranking.recent_delta <= 0:
            continue
        if best is None or ranking.recent_delta > best.recent_delta:
            best = ranking

    if best is None:
        return None
    return SurgingHighlight(
        team=best.team, delta=best.recent_delta, round_number=last_completed_round
    )


def tight_race_highlight(rankings: list[TeamRanking]) -> TightRaceHighlight | None:
    """Adjacent pair with the smallest strictly positive gap."""
    race: TightRaceHighlight | None = None
    for current, following in zip(rankings, rankings[1:]):
        margin = current.total_score - following.total_score
        if margin <= 0:
            continue
        if race is None or margin < race.margin:
            race = TightRaceHighlight(margin=margin, teams=(current.team, following.team))
    return race


def round_hero_highlight(scores: list[Score], teams: list[Team]) -> RoundHeroHighlight | None:
    """Highest single score in any round; earliest entry wins ties."""
    teams_by_id = {t.id: t for t in teams}

    hero: Score | None = None
    for score in scores:
        if score.team_id not in teams_by_id:
            continue
        if hero is None or score.points > hero.points:
            hero = score

    if hero is None:
        return None
    return RoundHeroHighlight(
        team=teams_by_id[hero.team_id], points=hero.points, round_number=hero.round_number
    )


def calculate_highlights(
    rankings: list[TeamRanking],
    scores: list[Score],
    teams: list[Team],
    last_completed_round: int | None,
) -> Highlights:
    return Highlights(
        leader=leader_highlight(rankings),
        surging=surging_highlight(rankings, last_completed_round),
        round_hero=round_hero_highlight(scores, teams),
        tight_race=tight_race_highlight(rankings),
    )


def _round_status(event: Event, round_number: int, has_scores: bool) -> RoundStatus:
    if event.status == "completed":
        return "completed" if has_scores else "upcoming"
    if event.current_round is not None:
        if round_number == event.current_round:
            return "current"
        if round_number < event.current_round:
            return "completed"
    return "completed" if has_scores else "upcoming"


def summarize_rounds(
    event: Event,
    rounds: list[Round],
    teams: list[Team],
    scores: list[Score],
    tracker: RoundCompletionTracker,
) -> list[RoundSummary]:
    """One summary line per defined round, ordered by round number."""
    names = {t.id: t.name for t in teams}

    summaries = []
    for round_ in sorted(rounds, key=lambda r: r.round_number):
        round_scores = [s for s in scores if s.round_number == round_.round_number]

        top: Score | None = None
        for score in round_scores:
            if top is None or score.points > top.points:
                top = score

        summaries.append(
            RoundSummary(
                round_number=round_.round_number,
                name=round_.round_name,
                is_bonus=round_.is_bonus,
                max_points=round_.max_points,
                status=_round_status(event, round_.round_number, bool(round_scores)),
                is_fully_scored=tracker.is_round_completed(round_.round_number),
                top_team_name=names.get(top.team_id) if top else None,
                top_score=top.points if top else None,
            )
        )
    return summaries
