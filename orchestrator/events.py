"""
Lifecycle events emitted by the arena.

The orchestrator reports progress through one ordered stream of these
models instead of UI callbacks. Consumers switch on ``event.type``:

    entrant_completed     a viewpoint was generated
    entrant_failed        a profile's generation failed (batch continues)
    match_started         a match is about to debate
    turn_completed        one dialogue turn was appended
    match_completed       a match has its winner
    tournament_completed  the bracket is resolved
    tournament_failed     the bracket could not be seeded, or a match failed
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from agents.base import Turn, Viewpoint
from orchestrator.models import Match, MatchRound, TournamentResult


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class EntrantCompleted(_Event):
    type: Literal["entrant_completed"] = "entrant_completed"
    viewpoint: Viewpoint
    completed: int = Field(ge=1, description="Settled generations so far (successes and failures)")
    total: int


class EntrantFailed(_Event):
    type: Literal["entrant_failed"] = "entrant_failed"
    analyst_id: str
    error: str
    completed: int = Field(ge=1)
    total: int


class MatchStarted(_Event):
    type: Literal["match_started"] = "match_started"
    match_id: str
    round: MatchRound
    index: int
    bull_id: str
    bear_id: str


class TurnCompleted(_Event):
    type: Literal["turn_completed"] = "turn_completed"
    match_id: str
    round: MatchRound
    turn_number: int = Field(ge=1, description="1-based position of the turn in the match")
    turn: Turn


class MatchCompleted(_Event):
    type: Literal["match_completed"] = "match_completed"
    match: Match


class TournamentCompleted(_Event):
    type: Literal["tournament_completed"] = "tournament_completed"
    result: TournamentResult


class TournamentFailed(_Event):
    type: Literal["tournament_failed"] = "tournament_failed"
    round: MatchRound | None = Field(
        default=None, description="None when the bracket could not be seeded"
    )
    match_id: str | None = None
    error: str


GenerationEvent = Union[EntrantCompleted, EntrantFailed]
TournamentEvent = Union[
    MatchStarted, TurnCompleted, MatchCompleted, TournamentCompleted, TournamentFailed
]
ArenaEvent = Union[GenerationEvent, TournamentEvent]
