"""
Recommendation Synthesizer — folds the field and the bracket into one call.

Pure function of (entrants, tournament). The champion sets the direction;
the rest of the field decides how hard to lean on it:

    stance        champion's, softened one notch toward hold when a strict
                  majority of the field leans the other way
    confidence    champion confidence, plus up to 20 for a decisive final
    consensus     share of entrants pointing the champion's way
    price target  confidence-weighted blend, champion and match winners
                  weighted up
    allocation    confidence x risk multiplier x consensus, capped
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from agents.base import Direction, PriceTarget, Side, Stance, Viewpoint
from config.settings import settings
from orchestrator.errors import InsufficientEntrants
from orchestrator.models import (
    DissentingView,
    FinalRecommendation,
    RiskLevel,
    TournamentResult,
)

logger = logging.getLogger(__name__)

MAX_TOP_ARGUMENTS = 5
MAX_KEY_ITEMS = 5
CHAMPION_ARGUMENTS = 2
CHAMPION_WEIGHT = 1.5
WIN_BONUS = 0.1

RISK_MULTIPLIERS = {
    RiskLevel.LOW: 1.2,
    RiskLevel.MEDIUM: 1.0,
    RiskLevel.HIGH: 0.7,
    RiskLevel.VERY_HIGH: 0.4,
}

# One notch toward hold.
_SOFTENED = {
    Stance.STRONG_BUY: Stance.BUY,
    Stance.BUY: Stance.HOLD,
    Stance.HOLD: Stance.HOLD,
    Stance.SELL: Stance.HOLD,
    Stance.STRONG_SELL: Stance.SELL,
}


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def determine_stance(champion: Viewpoint, entrants: Sequence[Viewpoint]) -> Stance:
    direction = champion.direction
    if direction is Direction.NEUTRAL:
        return champion.stance
    opposed = sum(1 for v in entrants if v.direction is direction.opposite())
    if opposed * 2 > len(entrants):
        softened = _SOFTENED[champion.stance]
        logger.info(
            f"{opposed}/{len(entrants)} entrants oppose the champion; "
            f"softening {champion.stance.label} to {softened.label}"
        )
        return softened
    return champion.stance


def calculate_confidence(champion: Viewpoint, tournament: TournamentResult) -> float:
    margin = tournament.final.margin if tournament.final else 0.0
    decisiveness = min(margin / 20.0, 1.0)
    return round(_clamp(0.8 * champion.confidence + 20.0 * decisiveness), 2)


def calculate_consensus(champion: Viewpoint, entrants: Sequence[Viewpoint]) -> float:
    agreeing = sum(1 for v in entrants if v.direction is champion.direction)
    return _clamp(round(100.0 * agreeing / len(entrants)))


def weighted_price_target(
    entrants: Sequence[Viewpoint], tournament: TournamentResult
) -> PriceTarget:
    champion_id = tournament.champion.analyst_id if tournament.champion else None
    total_weight = bull = base = bear = 0.0

    for v in entrants:
        weight = max(v.confidence, 1.0) / 100.0
        if v.analyst_id == champion_id:
            weight *= CHAMPION_WEIGHT
        weight *= 1 + WIN_BONUS * tournament.wins_for(v.analyst_id)

        total_weight += weight
        bull += v.price_target.bull * weight
        base += v.price_target.base * weight
        bear += v.price_target.bear * weight

    return PriceTarget(
        bull=round(bull / total_weight, 2),
        base=round(base / total_weight, 2),
        bear=round(bear / total_weight, 2),
        horizon=entrants[0].price_target.horizon,
    )


def assess_risk_level(
    entrants: Sequence[Viewpoint], consensus: float, champion: Viewpoint
) -> RiskLevel:
    points = 0

    # Dispersion of each entrant's own bull/bear range
    spreads = [
        (v.price_target.bull - v.price_target.bear) / v.price_target.base
        for v in entrants
        if v.price_target.base > 0
    ]
    if spreads:
        spread = sum(spreads) / len(spreads)
        if spread > 0.6:
            points += 3
        elif spread > 0.4:
            points += 2
        elif spread > 0.2:
            points += 1

    # Field split down the middle
    bulls = sum(1 for v in entrants if v.direction is Direction.BULLISH)
    bears = sum(1 for v in entrants if v.direction is Direction.BEARISH)
    if abs(bulls - bears) <= 1 and len(entrants) > 4:
        points += 1

    if consensus < 50:
        points += 1
    if champion.confidence < 50:
        points += 1

    if points >= 5:
        return RiskLevel.VERY_HIGH
    if points >= 3:
        return RiskLevel.HIGH
    if points >= 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def suggested_allocation(
    stance: Stance,
    confidence: float,
    risk_level: RiskLevel,
    consensus: float,
    max_allocation: float,
) -> float:
    """Percent of portfolio; zero for hold."""
    if stance is Stance.HOLD:
        return 0.0
    allocation = confidence / 20.0 * RISK_MULTIPLIERS[risk_level] * consensus / 100.0
    return max(0.0, min(max_allocation, round(allocation, 1)))


def _add_unique(target: list[str], args: Iterable[str]) -> None:
    for arg in args:
        if len(target) >= MAX_TOP_ARGUMENTS:
            return
        if arg and arg not in target:
            target.append(arg)


def top_arguments(
    entrants: Sequence[Viewpoint], tournament: TournamentResult
) -> tuple[list[str], list[str]]:
    """(bull, bear): champion first, then the field, then debate winners."""
    bull_args: list[str] = []
    bear_args: list[str] = []
    champion = tournament.champion

    if champion is not None:
        _add_unique(bull_args, champion.bull_case[:CHAMPION_ARGUMENTS])
        _add_unique(bear_args, champion.bear_case[:CHAMPION_ARGUMENTS])

    for v in entrants:
        if champion is not None and v.analyst_id == champion.analyst_id:
            continue
        _add_unique(bull_args, v.bull_case)
        _add_unique(bear_args, v.bear_case)

    for match in tournament.all_matches:
        target = bull_args if match.winner is Side.BULL else bear_args
        for arg in match.winning_arguments:
            prefix = arg[:50]
            if len(target) < MAX_TOP_ARGUMENTS and not any(prefix in a for a in target):
                target.append(arg)

    return bull_args, bear_args


def most_frequent(items: Iterable[str], limit: int = MAX_KEY_ITEMS) -> list[str]:
    """Most common items (case-insensitive), first-seen order on ties."""
    counts = Counter(item.strip().lower() for item in items if item and item.strip())
    ranked = counts.most_common(limit)
    return [text[0].upper() + text[1:] for text, _ in ranked]


def dissenting_views(champion: Viewpoint, entrants: Sequence[Viewpoint]) -> list[DissentingView]:
    dissent = []
    for v in entrants:
        if v.direction is champion.direction:
            continue
        reasoning = v.summary or (v.bear_case[0] if v.bear_case else "") or "Disagrees with the champion"
        dissent.append(DissentingView(
            analyst_id=v.analyst_id,
            analyst_name=v.display_name,
            stance=v.stance,
            reasoning=reasoning,
        ))
    return dissent


def executive_summary(
    stance: Stance,
    confidence: float,
    price_target: PriceTarget,
    champion: Viewpoint,
    current_price: float | None,
    upside_pct: float | None,
) -> str:
    summary = (
        f"The debate tournament results in a {stance.label} recommendation "
        f"with {confidence:.0f}% confidence. "
    )
    if current_price and upside_pct is not None:
        direction = "upside" if upside_pct >= 0 else "downside"
        summary += (
            f"At ${current_price:.2f}, we see {direction} of {abs(upside_pct):.1f}% "
            f"to the ${price_target.base:.2f} base case target. "
        )
    else:
        summary += f"Blended base case target is ${price_target.base:.2f}. "
    emphasis = champion.bull_case[0].lower() if champion.bull_case else "key fundamentals"
    summary += (
        f"The {champion.methodology.value} perspective of {champion.display_name} "
        f"prevailed, emphasizing {emphasis}."
    )
    return summary


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def synthesize_recommendation(
    entrants: Sequence[Viewpoint],
    tournament: TournamentResult,
    current_price: float | None = None,
    max_allocation: float | None = None,
) -> FinalRecommendation:
    """
    Reduce all entrants and the completed bracket to a FinalRecommendation.

    Raises:
        InsufficientEntrants: if there are no entrants.
        ValueError: if the tournament has no champion.
    """
    entrants = list(entrants)
    if not entrants:
        raise InsufficientEntrants(succeeded=0, required=1)
    champion = tournament.champion
    if champion is None:
        raise ValueError("Cannot synthesize a recommendation without a champion")
    if max_allocation is None:
        max_allocation = settings.max_allocation_pct

    stance = determine_stance(champion, entrants)
    confidence = calculate_confidence(champion, tournament)
    consensus = calculate_consensus(champion, entrants)
    price_target = weighted_price_target(entrants, tournament)
    risk_level = assess_risk_level(entrants, consensus, champion)
    allocation = suggested_allocation(stance, confidence, risk_level, consensus, max_allocation)
    bull_args, bear_args = top_arguments(entrants, tournament)

    upside_pct = None
    if current_price and current_price > 0:
        upside_pct = round((price_target.base - current_price) / current_price * 100, 1)

    recommendation = FinalRecommendation(
        stance=stance,
        confidence=confidence,
        consensus_strength=consensus,
        price_target=price_target,
        suggested_allocation=allocation,
        risk_level=risk_level,
        top_bull_arguments=bull_args,
        top_bear_arguments=bear_args,
        key_risks=most_frequent(r for v in entrants for r in v.risks),
        key_catalysts=most_frequent(c for v in entrants for c in v.catalysts),
        dissenting_views=dissenting_views(champion, entrants),
        champion_id=champion.analyst_id,
        entrants_considered=len(entrants),
        matches_completed=len(tournament.all_matches),
        upside_pct=upside_pct,
        executive_summary=executive_summary(
            stance, confidence, price_target, champion, current_price, upside_pct
        ),
    )
    logger.info(
        f"Recommendation: {stance.label} @ {confidence:.0f}% confidence, "
        f"consensus {consensus:.0f}%, risk {risk_level.value}, "
        f"allocation {allocation:.1f}%"
    )
    return recommendation
