"""
Debate Arena — the whole pipeline behind one call.

Wires the three phases together:
    1. GenerationCoordinator builds the field (bounded pool, cancellable)
    2. TournamentScheduler plays the bracket (rounds strictly ordered)
    3. synthesize_recommendation reduces everything to one call

    profiles ──► [ generate ] ──► entrants ──► [ bracket ] ──► champion
                                     │                            │
                                     └────────► [ synthesize ] ◄──┘
                                                     │
                                              FinalRecommendation

stream() yields every lifecycle event of the run as one ordered sequence;
run() consumes it and returns an ArenaResult.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from agents.base import AnalystProfile, Viewpoint
from agents.profiles import default_profiles
from orchestrator.debate import DebateEngine
from orchestrator.errors import EntrantGenerationFailed
from orchestrator.events import (
    ArenaEvent,
    EntrantCompleted,
    EntrantFailed,
    TournamentCompleted,
)
from orchestrator.generation import GenerationCoordinator
from orchestrator.models import FinalRecommendation, TournamentResult
from orchestrator.scheduler import TournamentScheduler
from orchestrator.synthesis import synthesize_recommendation

logger = logging.getLogger(__name__)


@dataclass
class ArenaResult:
    """Complete result from one debate arena run."""

    entrants: list[Viewpoint] = field(default_factory=list)
    generation_errors: list[EntrantGenerationFailed] = field(default_factory=list)
    tournament: TournamentResult | None = None
    recommendation: FinalRecommendation | None = None
    cancelled: bool = False
    total_duration_ms: float = 0.0

    @property
    def champion(self) -> Viewpoint | None:
        return self.tournament.champion if self.tournament else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain data for the caller's persistence layer."""
        return {
            "entrants": [v.model_dump(mode="json") for v in self.entrants],
            "generation_errors": [
                {"analyst_id": e.analyst_id, "error": e.reason}
                for e in self.generation_errors
            ],
            "tournament": self.tournament.model_dump(mode="json") if self.tournament else None,
            "recommendation": (
                self.recommendation.model_dump(mode="json") if self.recommendation else None
            ),
            "cancelled": self.cancelled,
            "total_duration_ms": self.total_duration_ms,
        }


class DebateArena:
    """
    Orchestrates generation, the tournament and synthesis.

    Capabilities are injected; the arena holds no other state between runs.
    """

    def __init__(
        self,
        generator: Any,
        debater: Any,
        generation_concurrency: int | None = None,
        match_concurrency: int | None = None,
        turns_per_side: int | None = None,
        final_extra_exchanges: int | None = None,
        min_entrants: int | None = None,
    ):
        """
        Args:
            generator: ViewpointGenerator (or callable) producing entrants
            debater: TurnGenerator (or callable) producing debate turns
            Remaining knobs default to config.settings.
        """
        self.coordinator = GenerationCoordinator(generator, concurrency=generation_concurrency)
        self.engine = DebateEngine(
            debater,
            turns_per_side=turns_per_side,
            final_extra_exchanges=final_extra_exchanges,
        )
        self.scheduler = TournamentScheduler(
            self.engine,
            match_concurrency=match_concurrency,
            min_entrants=min_entrants,
        )

    def stream(
        self,
        market_data: Mapping[str, Any],
        profiles: Iterable[AnalystProfile] | None = None,
        cancel: threading.Event | None = None,
    ) -> Iterator[ArenaEvent]:
        """
        Yield every event of the run: generation, then the tournament.

        A cancelled run ends after the generation events. Tournament
        errors (InsufficientEntrants, TournamentAborted) propagate.
        """
        profiles = list(profiles) if profiles is not None else default_profiles()
        entrants: list[Viewpoint] = []
        settled = 0

        logger.info(f"Phase 1/3: generating {len(profiles)} viewpoints...")
        for event in self.coordinator.stream(profiles, market_data, cancel=cancel):
            settled += 1
            if isinstance(event, EntrantCompleted):
                entrants.append(event.viewpoint)
            yield event

        # A token set after the last viewpoint settled cancels nothing.
        if cancel is not None and cancel.is_set() and settled < len(profiles):
            logger.info(f"Run cancelled with {len(entrants)} viewpoint(s); skipping tournament")
            return

        logger.info(f"Phase 2/3: tournament with {len(entrants)} entrants...")
        yield from self.scheduler.stream(entrants, market_data)

    def run(
        self,
        market_data: Mapping[str, Any],
        profiles: Iterable[AnalystProfile] | None = None,
        cancel: threading.Event | None = None,
        on_event: Callable[[ArenaEvent], None] | None = None,
        current_price: float | None = None,
    ) -> ArenaResult:
        """
        Run the full arena.

        Args:
            market_data: Opaque bundle passed through to the capabilities
            profiles: Analyst profiles (default: the eight built-in analysts)
            cancel: Set to stop generation; the result is marked cancelled
            on_event: Optional callback receiving every event as it happens
            current_price: Used for upside in the recommendation

        Returns:
            ArenaResult with entrants, bracket and recommendation
        """
        t_start = time.time()
        result = ArenaResult()

        for event in self.stream(market_data, profiles=profiles, cancel=cancel):
            if isinstance(event, EntrantCompleted):
                result.entrants.append(event.viewpoint)
            elif isinstance(event, EntrantFailed):
                result.generation_errors.append(
                    EntrantGenerationFailed(event.analyst_id, event.error)
                )
            elif isinstance(event, TournamentCompleted):
                result.tournament = event.result
            if on_event:
                on_event(event)

        if result.tournament is None:
            result.cancelled = True
        else:
            logger.info("Phase 3/3: synthesizing recommendation...")
            result.recommendation = synthesize_recommendation(
                result.entrants, result.tournament, current_price=current_price
            )

        result.total_duration_ms = (time.time() - t_start) * 1000
        logger.info(f"Arena complete in {result.total_duration_ms:.0f}ms")
        return result
