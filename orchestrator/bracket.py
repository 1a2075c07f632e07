"""
Bracket Builder — seeding, pairing, and round progression.

Seeding is a pure function of the entrant set: confidence descending, then
analyst_id ascending. Completion order never matters, so the same entrants
always produce the same bracket.

Seeds fill eight slots in the standard order so that the top two seeds can
only meet in the final:

    slot   0  1 | 2  3 | 4  5 | 6  7
    seed   1  8 | 4  5 | 2  7 | 3  6
           └QF1┘ └QF2┘ └QF3┘ └QF4┘
              └─SF1─┘     └─SF2─┘
                    └─FINAL─┘

With fewer than eight entrants the missing seeds are byes: an entrant
whose slot partner is empty advances without debating.

Sides: the more bullish stance argues bull; on equal stance the better
seed argues bull. Sides follow the pairing, not conviction, so two
sell-leaning entrants still produce a bull and a bear.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from agents.base import Viewpoint
from orchestrator.models import Match, MatchRound, Pairing

logger = logging.getLogger(__name__)

BRACKET_SIZE = 8
SEED_ORDER: tuple[int, ...] = (1, 8, 4, 5, 2, 7, 3, 6)

Slot = Viewpoint | None


@dataclass
class RoundPlan:
    """What one round looks like before it is played."""

    round: MatchRound
    pairings: list[Pairing] = field(default_factory=list)
    # slot-pair position (1-based) -> entrant advancing without a match
    byes: dict[int, Viewpoint] = field(default_factory=dict)
    width: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.pairings and not self.byes


def seed_entrants(viewpoints: Iterable[Viewpoint]) -> list[Viewpoint]:
    """Rank entrants: highest confidence first, analyst_id breaks ties."""
    seeded = sorted(viewpoints, key=lambda v: (-v.confidence, v.analyst_id))
    ids = [v.analyst_id for v in seeded]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate entrants in bracket: {ids}")
    if len(seeded) > BRACKET_SIZE:
        raise ValueError(f"Bracket holds {BRACKET_SIZE} entrants, got {len(seeded)}")
    return seeded


def seed_numbers(seeded: Sequence[Viewpoint]) -> dict[str, int]:
    """analyst_id -> seed (1 = top seed)."""
    return {v.analyst_id: i + 1 for i, v in enumerate(seeded)}


def initial_slots(seeded: Sequence[Viewpoint]) -> list[Slot]:
    """Place seeds into the eight first-round slots; absent seeds are byes."""
    return [seeded[seed - 1] if seed <= len(seeded) else None for seed in SEED_ORDER]


def assign_sides(
    first: Viewpoint, second: Viewpoint, seeds: dict[str, int]
) -> tuple[Viewpoint, Viewpoint]:
    """Return (bull, bear) for a pairing."""
    if first.stance.score != second.stance.score:
        return (first, second) if first.stance.score > second.stance.score else (second, first)
    if seeds[first.analyst_id] <= seeds[second.analyst_id]:
        return first, second
    return second, first


def pair_round(round: MatchRound, slots: Sequence[Slot], seeds: dict[str, int]) -> RoundPlan:
    """Pair consecutive slots into matches; lone entrants get byes."""
    if len(slots) % 2:
        raise ValueError(f"Round needs an even number of slots, got {len(slots)}")

    plan = RoundPlan(round=round, width=len(slots) // 2)
    for position in range(plan.width):
        first, second = slots[2 * position], slots[2 * position + 1]
        index = position + 1
        if first is not None and second is not None:
            bull, bear = assign_sides(first, second, seeds)
            plan.pairings.append(Pairing(round=round, index=index, bull=bull, bear=bear))
        elif first is not None or second is not None:
            plan.byes[index] = first if first is not None else second

    for index, entrant in plan.byes.items():
        logger.info(f"  {round.value}-{index}: {entrant.display_name} advances on a bye")
    return plan


def advance(plan: RoundPlan, matches: Iterable[Match]) -> list[Slot]:
    """Slots for the next round: match winners and bye holders, in bracket order."""
    by_index = {m.index: m for m in matches}
    missing = [p.index for p in plan.pairings if p.index not in by_index]
    if missing:
        raise ValueError(
            f"Cannot advance {plan.round.value}: matches {missing} are unresolved"
        )

    slots: list[Slot] = []
    for index in range(1, plan.width + 1):
        if index in by_index:
            slots.append(by_index[index].winning_viewpoint)
        else:
            slots.append(plan.byes.get(index))
    return slots
