"""
Tournament data models.

All of these are frozen: a Match is built once, when its winner is known,
and a TournamentResult grows by returning new copies (with_match) rather
than being mutated.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from agents.base import PriceTarget, Side, Stance, Turn, Viewpoint

# ---------------------------------------------------------------------------
# Rounds
# ---------------------------------------------------------------------------

class MatchRound(str, Enum):
    QUARTERFINAL = "quarterfinal"
    SEMIFINAL = "semifinal"
    FINAL = "final"


ROUND_SEQUENCE: tuple[MatchRound, ...] = (
    MatchRound.QUARTERFINAL,
    MatchRound.SEMIFINAL,
    MatchRound.FINAL,
)


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

class Pairing(BaseModel):
    """Two viewpoints assigned to sides for one bracket slot."""

    model_config = ConfigDict(frozen=True)

    round: MatchRound
    index: int = Field(ge=1, description="1-based position within the round")
    bull: Viewpoint
    bear: Viewpoint

    @property
    def match_id(self) -> str:
        return f"{self.round.value}-{self.index}"

    def viewpoint(self, side: Side) -> Viewpoint:
        return self.bull if side is Side.BULL else self.bear


class SideScores(BaseModel):
    """A (bull, bear) pair for one scoring dimension."""

    model_config = ConfigDict(frozen=True)

    bull: float = Field(ge=0.0)
    bear: float = Field(ge=0.0)

    def for_side(self, side: Side) -> float:
        return self.bull if side is Side.BULL else self.bear


class ScoreBreakdown(BaseModel):
    """Four-dimension debate score. The totals decide the match."""

    model_config = ConfigDict(frozen=True)

    data_quality: SideScores
    logical_coherence: SideScores
    risk_acknowledgment: SideScores
    catalyst_identification: SideScores
    bull_total: float = Field(ge=0.0)
    bear_total: float = Field(ge=0.0)

    def total(self, side: Side) -> float:
        return self.bull_total if side is Side.BULL else self.bear_total

    @property
    def margin(self) -> float:
        return abs(self.bull_total - self.bear_total)


class Match(BaseModel):
    """A completed head-to-head debate."""

    model_config = ConfigDict(frozen=True)

    match_id: str
    round: MatchRound
    index: int
    bull: Viewpoint
    bear: Viewpoint
    turns: tuple[Turn, ...]
    winner: Side
    scores: ScoreBreakdown
    tie_break: str | None = Field(
        default=None,
        description="Name of the tie-break rule that decided the match, if totals tied",
    )
    winning_arguments: tuple[str, ...] = ()

    @property
    def winning_viewpoint(self) -> Viewpoint:
        return self.bull if self.winner is Side.BULL else self.bear

    @property
    def losing_viewpoint(self) -> Viewpoint:
        return self.bear if self.winner is Side.BULL else self.bull

    @property
    def margin(self) -> float:
        return self.scores.margin


# ---------------------------------------------------------------------------
# Tournament result (immutable fold)
# ---------------------------------------------------------------------------

class TournamentResult(BaseModel):
    """Bracket state. Complete once the final has been played."""

    model_config = ConfigDict(frozen=True)

    quarterfinals: tuple[Match, ...] = ()
    semifinals: tuple[Match, ...] = ()
    final: Match | None = None
    champion: Viewpoint | None = None
    all_matches: tuple[Match, ...] = ()

    def with_match(self, match: Match) -> "TournamentResult":
        """Return a new result with ``match`` folded in."""
        update: dict = {"all_matches": self.all_matches + (match,)}
        if match.round is MatchRound.QUARTERFINAL:
            update["quarterfinals"] = self.quarterfinals + (match,)
        elif match.round is MatchRound.SEMIFINAL:
            update["semifinals"] = self.semifinals + (match,)
        else:
            update["final"] = match
            update["champion"] = match.winning_viewpoint
        return self.model_copy(update=update)

    def matches_in(self, round: MatchRound) -> tuple[Match, ...]:
        if round is MatchRound.QUARTERFINAL:
            return self.quarterfinals
        if round is MatchRound.SEMIFINAL:
            return self.semifinals
        return (self.final,) if self.final else ()

    def wins_for(self, analyst_id: str) -> int:
        return sum(1 for m in self.all_matches if m.winning_viewpoint.analyst_id == analyst_id)

    @property
    def is_complete(self) -> bool:
        return self.champion is not None


# ---------------------------------------------------------------------------
# Final recommendation
# ---------------------------------------------------------------------------

class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class DissentingView(BaseModel):
    """An entrant whose direction disagrees with the champion."""

    model_config = ConfigDict(frozen=True)

    analyst_id: str
    analyst_name: str
    stance: Stance
    reasoning: str


class FinalRecommendation(BaseModel):
    """The tournament reduced to one actionable call."""

    model_config = ConfigDict(frozen=True)

    stance: Stance
    confidence: float = Field(ge=0.0, le=100.0)
    consensus_strength: float = Field(ge=0.0, le=100.0)
    price_target: PriceTarget
    suggested_allocation: float = Field(ge=0.0, description="Percent of portfolio")
    risk_level: RiskLevel
    top_bull_arguments: list[str] = Field(default_factory=list)
    top_bear_arguments: list[str] = Field(default_factory=list)
    key_risks: list[str] = Field(default_factory=list)
    key_catalysts: list[str] = Field(default_factory=list)
    dissenting_views: list[DissentingView] = Field(default_factory=list)
    champion_id: str
    entrants_considered: int
    matches_completed: int
    upside_pct: float | None = None
    executive_summary: str = ""
