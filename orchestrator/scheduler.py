"""
Tournament Scheduler — runs the bracket round by round.

    entrants ──► seed ──► QUARTERFINAL ──► SEMIFINAL ──► FINAL ──► champion
                            │ (barrier)      │ (barrier)   │
                            ▼                ▼             ▼
                        fold matches     fold matches   fold match

Rounds are strictly ordered: every match of a round completes before any
match of the next is paired. Inside a round, matches can run on a small
thread pool; their events are funnelled through one queue so the caller
reads a single ordered stream.

Failure policy is fail-fast: the first match that fails cancels whatever
of its round has not started, a TournamentFailed event is emitted, and
TournamentAborted is raised. No partial result is returned.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from agents.base import Viewpoint
from config.settings import settings
from orchestrator.bracket import (
    advance,
    initial_slots,
    pair_round,
    seed_entrants,
    seed_numbers,
)
from orchestrator.debate import DebateEngine
from orchestrator.errors import InsufficientEntrants, TournamentAborted
from orchestrator.events import (
    MatchStarted,
    TournamentCompleted,
    TournamentEvent,
    TournamentFailed,
)
from orchestrator.models import ROUND_SEQUENCE, Match, MatchRound, Pairing, TournamentResult

logger = logging.getLogger(__name__)


# Worker -> scheduler signals travelling on the same queue as the events.
@dataclass(frozen=True)
class _Finished:
    index: int
    match: Match


@dataclass(frozen=True)
class _Crashed:
    index: int
    match_id: str
    error: BaseException


class TournamentScheduler:
    """Drives a DebateEngine through the whole bracket."""

    def __init__(
        self,
        engine: DebateEngine,
        match_concurrency: int | None = None,
        min_entrants: int | None = None,
    ):
        self.engine = engine
        self.match_concurrency = (
            match_concurrency if match_concurrency is not None else settings.match_concurrency
        )
        self.min_entrants = min_entrants if min_entrants is not None else settings.min_entrants
        if self.match_concurrency < 1:
            raise ValueError(f"match_concurrency must be >= 1, got {self.match_concurrency}")
        # A final needs two finalists.
        if self.min_entrants < 2:
            raise ValueError(f"min_entrants must be >= 2, got {self.min_entrants}")

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _play(
        self,
        pairing: Pairing,
        market_data: Mapping[str, Any],
        sink: queue.Queue,
        abort: threading.Event,
    ) -> None:
        if abort.is_set():
            return
        sink.put(MatchStarted(
            match_id=pairing.match_id,
            round=pairing.round,
            index=pairing.index,
            bull_id=pairing.bull.analyst_id,
            bear_id=pairing.bear.analyst_id,
        ))
        try:
            match = self.engine.run(pairing, market_data, emit=sink.put)
        except Exception as e:
            sink.put(_Crashed(pairing.index, pairing.match_id, e))
            return
        sink.put(_Finished(pairing.index, match))

    # ------------------------------------------------------------------
    # Scheduler side
    # ------------------------------------------------------------------

    def _play_round(
        self,
        round: MatchRound,
        pairings: list[Pairing],
        market_data: Mapping[str, Any],
    ) -> Iterator[TournamentEvent | list[Match]]:
        """Yield the round's events, then its matches ordered by index."""
        sink: queue.Queue = queue.Queue()
        abort = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=min(self.match_concurrency, len(pairings)),
            thread_name_prefix=f"{round.value}",
        )
        finished: dict[int, Match] = {}
        try:
            for pairing in pairings:
                executor.submit(self._play, pairing, market_data, sink, abort)

            while len(finished) < len(pairings):
                item = sink.get()
                if isinstance(item, _Finished):
                    finished[item.index] = item.match
                elif isinstance(item, _Crashed):
                    abort.set()
                    reason = str(item.error) or type(item.error).__name__
                    logger.error(f"Tournament aborted in {item.match_id}: {reason}")
                    yield TournamentFailed(round=round, match_id=item.match_id, error=reason)
                    raise TournamentAborted(round.value, item.match_id, reason) from item.error
                else:
                    yield item
        finally:
            abort.set()
            executor.shutdown(wait=False, cancel_futures=True)

        yield [finished[i] for i in sorted(finished)]

    def stream(
        self,
        entrants: Iterable[Viewpoint],
        market_data: Mapping[str, Any],
    ) -> Iterator[TournamentEvent]:
        """
        Run the tournament, yielding every event in order.

        The last event is TournamentCompleted on success. On failure the
        last event is TournamentFailed and the error is raised to the
        consumer. A field too small to seed fails with round=None.

        Raises:
            InsufficientEntrants: fewer than min_entrants viewpoints.
            TournamentAborted: a match failed.
        """
        entrants = list(entrants)
        if len(entrants) < self.min_entrants:
            error = InsufficientEntrants(succeeded=len(entrants), required=self.min_entrants)
            logger.error(f"Tournament not started: {error}")
            yield TournamentFailed(error=str(error))
            raise error

        t_start = time.time()
        seeded = seed_entrants(entrants)
        seeds = seed_numbers(seeded)
        logger.info(
            "Seeding: "
            + ", ".join(f"#{seeds[v.analyst_id]} {v.display_name}" for v in seeded)
        )

        slots = initial_slots(seeded)
        result = TournamentResult()

        for round in ROUND_SEQUENCE:
            plan = pair_round(round, slots, seeds)
            matches: list[Match] = []
            if plan.pairings:
                logger.info(f"{round.value.title()}: {len(plan.pairings)} match(es)")
                for item in self._play_round(round, plan.pairings, market_data):
                    if isinstance(item, list):
                        matches = item
                    else:
                        yield item

            for match in matches:
                result = result.with_match(match)
            slots = advance(plan, matches)

        elapsed_ms = (time.time() - t_start) * 1000
        champion = result.champion
        logger.info(
            f"Tournament complete: {len(result.all_matches)} matches, champion "
            f"{champion.display_name if champion else 'none'} [{elapsed_ms:.0f}ms]"
        )
        yield TournamentCompleted(result=result)

    def run(
        self,
        entrants: Iterable[Viewpoint],
        market_data: Mapping[str, Any],
        on_event: Callable[[TournamentEvent], None] | None = None,
    ) -> TournamentResult:
        """Run the tournament to completion and return the folded result."""
        for event in self.stream(entrants, market_data):
            if on_event:
                on_event(event)
            if isinstance(event, TournamentCompleted):
                return event.result
        raise RuntimeError("Tournament stream ended without a result")
