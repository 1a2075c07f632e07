"""
Node functions for the LangGraph debate arena graph.

Each node wraps one phase component (GenerationCoordinator,
TournamentScheduler, synthesize_recommendation) and returns a partial
state update.

Node contract: (state: dict, config: RunnableConfig) -> dict

Non-serializable objects (the two capabilities, the on_event callback and
the cancel token) are read from config["configurable"].
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from langgraph.types import RunnableConfig

from orchestrator.debate import DebateEngine
from orchestrator.generation import GenerationCoordinator
from orchestrator.scheduler import TournamentScheduler
from orchestrator.synthesis import synthesize_recommendation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------

def _configurable(config: RunnableConfig | None, key: str) -> Any:
    if not config:
        return None
    return config.get("configurable", {}).get(key)


def _require(config: RunnableConfig | None, key: str) -> Any:
    value = _configurable(config, key)
    if value is None:
        raise ValueError(f"config['configurable']['{key}'] is required")
    return value


def _collector(config: RunnableConfig | None) -> tuple[list, Callable[[Any], None]]:
    """Return (events, callback): the callback records and forwards each event."""
    events: list = []
    on_event = _configurable(config, "on_event")

    def record(event: Any) -> None:
        events.append(event)
        if on_event:
            on_event(event)

    return events, record


# ---------------------------------------------------------------------------
# Phase 1: Generation
# ---------------------------------------------------------------------------

def generate_entrants(state: dict, config: RunnableConfig) -> dict:
    """Generate one viewpoint per profile on the bounded pool."""
    generator = _require(config, "generator")
    cancel = _configurable(config, "cancel")
    events, record = _collector(config)

    profiles = state["profiles"]
    logger.info(f"Phase 1/3: generating {len(profiles)} viewpoints...")

    coordinator = GenerationCoordinator(generator)
    result = coordinator.run(profiles, state["market_data"], on_event=record, cancel=cancel)

    return {
        "entrants": result.viewpoints,
        "generation_errors": result.errors,
        "cancelled": result.cancelled,
        "events": events,
    }


# ---------------------------------------------------------------------------
# Phase 2: Tournament
# ---------------------------------------------------------------------------

def run_tournament(state: dict, config: RunnableConfig) -> dict:
    """Play the bracket to a champion."""
    debater = _require(config, "debater")
    events, record = _collector(config)

    entrants = state["entrants"]
    logger.info(f"Phase 2/3: tournament with {len(entrants)} entrants...")

    scheduler = TournamentScheduler(DebateEngine(debater))
    tournament = scheduler.run(entrants, state["market_data"], on_event=record)
    return {"tournament": tournament, "events": events}


# ---------------------------------------------------------------------------
# Phase 3: Synthesis
# ---------------------------------------------------------------------------

def synthesize(state: dict, config: RunnableConfig) -> dict:
    """Fold the field and the bracket into a FinalRecommendation."""
    logger.info("Phase 3/3: synthesizing recommendation...")
    recommendation = synthesize_recommendation(
        state["entrants"],
        state["tournament"],
        current_price=state.get("current_price"),
    )
    return {"recommendation": recommendation}


# ---------------------------------------------------------------------------
# Finalize
# ---------------------------------------------------------------------------

def finalize(state: dict, config: RunnableConfig) -> dict:
    """Compute total duration and log completion."""
    duration_ms = (time.time() - state["start_time"]) * 1000

    rec = state.get("recommendation")
    if rec:
        logger.info(
            f"  Decision: {rec.stance.label} | "
            f"Confidence: {rec.confidence:.0f}% | "
            f"Allocation: {rec.suggested_allocation:.1f}%"
        )
    elif state.get("cancelled"):
        logger.info(f"  Cancelled with {len(state.get('entrants', []))} viewpoint(s)")
    logger.info(f"Arena complete in {duration_ms / 1000:.1f}s")

    return {"total_duration_ms": duration_ms}
