"""
Generation Coordinator — produces the tournament's entrants.

Runs the viewpoint-generation capability once per analyst profile on a
bounded worker pool:

    profiles ──► [ pool of C workers ] ──► EntrantCompleted / EntrantFailed
                    (top-up: a new task is submitted only when one settles)

Events come out in completion order with a running (completed, total)
counter. A failing profile is recorded and the batch carries on; only an
empty, uncancelled batch is an error. Setting the cancel token stops the
stream immediately: queued work is dropped and in-flight work is abandoned
without being awaited.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

from agents.base import AnalystProfile, Viewpoint, resolve_capability
from config.settings import settings
from orchestrator.errors import EntrantGenerationFailed, InsufficientEntrants
from orchestrator.events import EntrantCompleted, EntrantFailed, GenerationEvent
from orchestrator.validation import coerce_viewpoint

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of one generation batch."""

    total: int
    viewpoints: list[Viewpoint] = field(default_factory=list)
    errors: list[EntrantGenerationFailed] = field(default_factory=list)
    cancelled: bool = False

    @property
    def settled(self) -> int:
        return len(self.viewpoints) + len(self.errors)


class GenerationCoordinator:
    """Bounded-concurrency generation of entrant viewpoints."""

    def __init__(
        self,
        generator: Any,
        concurrency: int | None = None,
        poll_seconds: float | None = None,
    ):
        """
        Args:
            generator: A ViewpointGenerator, or a callable (profile, market_data) -> Viewpoint
            concurrency: Max generations in flight (default: settings.generation_concurrency)
            poll_seconds: Cancel-token check interval while waiting on workers
        """
        self._generate = resolve_capability(generator, "generate")
        self.concurrency = (
            concurrency if concurrency is not None else settings.generation_concurrency
        )
        self.poll_seconds = poll_seconds or settings.cancel_poll_seconds
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")

    def _attempt(self, profile: AnalystProfile, market_data: Mapping[str, Any]) -> Viewpoint:
        raw = self._generate(profile, market_data)
        return coerce_viewpoint(raw, profile)

    def stream(
        self,
        profiles: Iterable[AnalystProfile],
        market_data: Mapping[str, Any],
        cancel: threading.Event | None = None,
    ) -> Iterator[GenerationEvent]:
        """Yield one event per settled profile, in completion order."""
        pending = deque(profiles)
        total = len(pending)
        if total == 0:
            return

        def cancelled() -> bool:
            return cancel is not None and cancel.is_set()

        executor = ThreadPoolExecutor(
            max_workers=self.concurrency, thread_name_prefix="entrant"
        )
        in_flight: dict[Future, tuple[int, AnalystProfile]] = {}
        submitted = 0
        completed = 0

        logger.info(
            f"Generating {total} viewpoints (concurrency={self.concurrency})"
        )
        try:
            while pending or in_flight:
                if cancelled():
                    logger.info(
                        f"Generation cancelled after {completed}/{total}; "
                        f"abandoning {len(in_flight)} in flight"
                    )
                    return

                while pending and len(in_flight) < self.concurrency:
                    profile = pending.popleft()
                    future = executor.submit(self._attempt, profile, market_data)
                    in_flight[future] = (submitted, profile)
                    submitted += 1

                done, _ = wait(
                    in_flight, timeout=self.poll_seconds, return_when=FIRST_COMPLETED
                )
                # Futures that settled together are reported in submission order.
                for future in sorted(done, key=lambda f: in_flight[f][0]):
                    if cancelled():
                        break
                    _, profile = in_flight.pop(future)
                    completed += 1
                    try:
                        viewpoint = future.result()
                    except Exception as e:
                        reason = str(e) or type(e).__name__
                        logger.warning(f"Viewpoint generation failed for {profile.id}: {reason}")
                        yield EntrantFailed(
                            analyst_id=profile.id,
                            error=reason,
                            completed=completed,
                            total=total,
                        )
                    else:
                        logger.info(
                            f"  [{completed}/{total}] {viewpoint.display_name}: "
                            f"{viewpoint.stance.label} @ {viewpoint.confidence:.0f}%"
                        )
                        yield EntrantCompleted(
                            viewpoint=viewpoint,
                            completed=completed,
                            total=total,
                        )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def run(
        self,
        profiles: Iterable[AnalystProfile],
        market_data: Mapping[str, Any],
        on_event: Callable[[GenerationEvent], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> GenerationResult:
        """
        Generate all entrants and collect the outcome.

        Raises:
            InsufficientEntrants: if no viewpoint succeeded and the batch
                was not cancelled.
        """
        profiles = list(profiles)
        result = GenerationResult(total=len(profiles))

        for event in self.stream(profiles, market_data, cancel=cancel):
            if isinstance(event, EntrantCompleted):
                result.viewpoints.append(event.viewpoint)
            else:
                result.errors.append(EntrantGenerationFailed(event.analyst_id, event.error))
            if on_event:
                on_event(event)

        result.cancelled = (
            cancel is not None and cancel.is_set() and result.settled < result.total
        )

        if not result.viewpoints and not result.cancelled:
            raise InsufficientEntrants(succeeded=0, required=1)

        logger.info(
            f"Generation complete: {len(result.viewpoints)} succeeded, "
            f"{len(result.errors)} failed"
            + (" (cancelled)" if result.cancelled else "")
        )
        return result
