"""
Debate scoring, winner determination and winning-argument extraction.

A side is scored on four dimensions over its own turns and viewpoint:

    data_quality             unique market metrics cited across its turns
    logical_coherence        mean turn strength, plus a consistency bonus
    risk_acknowledgment      downside the viewpoint concedes, and whether
                             the dialogue mentions risk at all
    catalyst_identification  named catalysts, and whether the dialogue
                             points at one

The total is a quarter of the dimension sum plus a small confidence bonus.
Equal totals go down a fixed tie-break chain so every match has exactly one
winner and the same inputs always pick the same one.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Sequence

from agents.base import Side, Turn, Viewpoint
from agents.signals import count_figures, is_causal, mentions_catalyst, mentions_risk
from orchestrator.models import ScoreBreakdown, SideScores

logger = logging.getLogger(__name__)

MAX_WINNING_ARGUMENTS = 3
ARGUMENT_MAX_CHARS = 250

TIE_BREAK_STRENGTH = "argument_strength"
TIE_BREAK_CONFIDENCE = "confidence"
TIE_BREAK_ANALYST_ID = "analyst_id"


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _side_turns(turns: Sequence[Turn], side: Side) -> list[Turn]:
    return [t for t in turns if t.side is side]


def mean_strength(turns: Sequence[Turn]) -> float:
    if not turns:
        return 0.0
    return statistics.fmean(t.argument_strength for t in turns)


# ---------------------------------------------------------------------------
# Per-dimension scores
# ---------------------------------------------------------------------------

def data_quality_score(turns: Sequence[Turn]) -> float:
    unique = {dp for t in turns for dp in t.data_points}
    return _clamp(12.0 * len(unique))


def logical_coherence_score(turns: Sequence[Turn]) -> float:
    if not turns:
        return 0.0
    strengths = [t.argument_strength for t in turns]
    spread = statistics.pstdev(strengths) if len(strengths) > 1 else 0.0
    return _clamp(statistics.fmean(strengths) + max(0.0, 10.0 - spread / 2))


def risk_score(turns: Sequence[Turn], viewpoint: Viewpoint) -> float:
    score = 15.0 * (len(viewpoint.bear_case) + len(viewpoint.risks))
    if any(mentions_risk(t.content) for t in turns):
        score += 15.0
    return _clamp(score)


def catalyst_score(turns: Sequence[Turn], viewpoint: Viewpoint) -> float:
    score = 20.0 * len(viewpoint.catalysts)
    if any(mentions_catalyst(t.content) for t in turns):
        score += 20.0
    return _clamp(score)


def _total(dimensions: Sequence[float], confidence: float) -> float:
    return _clamp(round(0.25 * sum(dimensions) + confidence / 20.0, 2))


def score_match(turns: Sequence[Turn], bull: Viewpoint, bear: Viewpoint) -> ScoreBreakdown:
    """Aggregate per-turn signals into the four-dimension breakdown."""
    bull_turns = _side_turns(turns, Side.BULL)
    bear_turns = _side_turns(turns, Side.BEAR)

    data_quality = SideScores(
        bull=data_quality_score(bull_turns), bear=data_quality_score(bear_turns)
    )
    coherence = SideScores(
        bull=logical_coherence_score(bull_turns), bear=logical_coherence_score(bear_turns)
    )
    risk = SideScores(bull=risk_score(bull_turns, bull), bear=risk_score(bear_turns, bear))
    catalysts = SideScores(
        bull=catalyst_score(bull_turns, bull), bear=catalyst_score(bear_turns, bear)
    )

    dims = (data_quality, coherence, risk, catalysts)
    return ScoreBreakdown(
        data_quality=data_quality,
        logical_coherence=coherence,
        risk_acknowledgment=risk,
        catalyst_identification=catalysts,
        bull_total=_total([d.bull for d in dims], bull.confidence),
        bear_total=_total([d.bear for d in dims], bear.confidence),
    )


# ---------------------------------------------------------------------------
# Winner
# ---------------------------------------------------------------------------

def decide_winner(
    scores: ScoreBreakdown,
    turns: Sequence[Turn],
    bull: Viewpoint,
    bear: Viewpoint,
) -> tuple[Side, str | None]:
    """
    Return (winner, tie_break_rule).

    The higher total wins outright and the rule is None. Equal totals fall
    through: mean argument strength, then viewpoint confidence, then the
    lexically smaller analyst_id.
    """
    if scores.bull_total != scores.bear_total:
        return (Side.BULL if scores.bull_total > scores.bear_total else Side.BEAR), None

    bull_strength = mean_strength(_side_turns(turns, Side.BULL))
    bear_strength = mean_strength(_side_turns(turns, Side.BEAR))
    if bull_strength != bear_strength:
        winner = Side.BULL if bull_strength > bear_strength else Side.BEAR
        return winner, TIE_BREAK_STRENGTH

    if bull.confidence != bear.confidence:
        winner = Side.BULL if bull.confidence > bear.confidence else Side.BEAR
        return winner, TIE_BREAK_CONFIDENCE

    winner = Side.BULL if bull.analyst_id < bear.analyst_id else Side.BEAR
    return winner, TIE_BREAK_ANALYST_ID


# ---------------------------------------------------------------------------
# Winning arguments
# ---------------------------------------------------------------------------

def _truncate(text: str, limit: int = ARGUMENT_MAX_CHARS) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    head = text[:limit]
    cut = max(head.rfind(". "), head.rfind("! "), head.rfind("? "))
    if cut >= limit // 2:
        return head[: cut + 1]
    return head.rstrip() + "..."


def _argument_rank(turn: Turn) -> float:
    rank = turn.argument_strength
    rank += 5 * len(turn.data_points)
    rank += 3 * count_figures(turn.content)
    if is_causal(turn.content):
        rank += 5
    return rank


def extract_winning_arguments(
    turns: Sequence[Turn], winner: Side, winning_viewpoint: Viewpoint
) -> list[str]:
    """The winner's strongest points, best first."""
    winner_turns = _side_turns(turns, winner)
    if not winner_turns:
        fallback = (
            winning_viewpoint.bull_case if winner is Side.BULL else winning_viewpoint.bear_case
        )
        return [_truncate(arg) for arg in fallback[:MAX_WINNING_ARGUMENTS]]

    # sorted() is stable, so equal ranks keep dialogue order
    ranked = sorted(winner_turns, key=_argument_rank, reverse=True)
    return [_truncate(t.content) for t in ranked[:MAX_WINNING_ARGUMENTS]]
