"""Snapshot and leaderboard models.

Snapshot models mirror what the persistence layer hands us (camelCase on the
wire). Leaderboard models are derived on every recompute and never persisted.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EventStatus = Literal["draft", "upcoming", "active", "completed", "archived"]
Movement = Literal["up", "down", "same", "new"]
RoundStatus = Literal["completed", "current", "upcoming"]
PublicViewKind = Literal["active", "completed", "upcoming", "none"]


class BaseSchema(BaseModel):
    """Base schema with camelCase wire aliases."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ============================================================================
# Snapshot Models
# ============================================================================


class Event(BaseSchema):
    """Trivia event with its lifecycle status."""

    id: str
    name: str = ""
    description: str | None = None
    status: EventStatus = "draft"
    current_round: int | None = None
    scheduled_date: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    updated_at: datetime | None = None


class Round(BaseSchema):
    """Round definition; round_number is unique within an event."""

    id: str | None = None
    round_number: int
    round_name: str | None = None
    description: str | None = None
    max_points: int | None = None
    is_bonus: bool = False


class Team(BaseSchema):
    """Team registered for an event from joined_round onwards."""

    id: str
    name: str
    joined_round: int = Field(default=1, ge=1)


class Score(BaseSchema):
    """Points for one (team, round) cell."""

    id: str | None = None
    team_id: str
    round_number: int
    points: Decimal = Field(ge=0)


class EventSnapshot(BaseSchema):
    """Full event data fetched fresh for every recompute.

    Collections are optional so that a truncated payload can be detected and
    rejected instead of silently ranked.
    """

    event: Event
    rounds: list[Round] | None = None
    teams: list[Team] | None = None
    scores: list[Score] | None = None


# ============================================================================
# Leaderboard Models
# ============================================================================


class RoundScore(BaseSchema):
    """Team points for one round (0 when nothing was entered)."""

    round_number: int
    points: Decimal


class TeamRanking(BaseSchema):
    """One leaderboard row."""

    team: Team
    total_score: Decimal
    rank: int
    round_scores: list[RoundScore] = Field(default_factory=list)
    last_round_points: Decimal = Decimal("0")
    previous_round_points: Decimal = Decimal("0")
    recent_delta: Decimal = Decimal("0")
    average_score: Decimal = Decimal("0")
    movement: Movement = "same"


class LeaderHighlight(BaseSchema):
    team: Team
    total: Decimal
    lead_over_next: Decimal | None = None


class SurgingHighlight(BaseSchema):
    team: Team
    delta: Decimal
    round_number: int


class RoundHeroHighlight(BaseSchema):
    team: Team
    points: Decimal
    round_number: int


class TightRaceHighlight(BaseSchema):
    margin: Decimal
    teams: tuple[Team, Team]


class Highlights(BaseSchema):
    """Narrative signals derived from the rankings."""

    leader: LeaderHighlight | None = None
    surging: SurgingHighlight | None = None
    round_hero: RoundHeroHighlight | None = None
    tight_race: TightRaceHighlight | None = None


class RoundSummary(BaseSchema):
    """Per-round progress line for the round strip."""

    round_number: int
    name: str | None = None
    is_bonus: bool = False
    max_points: int | None = None
    status: RoundStatus
    is_fully_scored: bool = False
    top_team_name: str | None = None
    top_score: Decimal | None = None


class LeaderboardData(BaseSchema):
    """Complete leaderboard document for one event."""

    event: Event
    rankings: list[TeamRanking]
    current_round: int | None = None
    total_rounds: int
    last_updated: datetime | None = None
    last_completed_round: int | None = None
    completed_rounds: list[int] = Field(default_factory=list)
    highlights: Highlights = Field(default_factory=Highlights)
    rounds_summary: list[RoundSummary] = Field(default_factory=list)


class PublicView(BaseSchema):
    """What the public landing page should show."""

    kind: PublicViewKind
    leaderboard: LeaderboardData | None = None
    event: Event | None = None
