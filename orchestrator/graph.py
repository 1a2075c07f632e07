"""
LangGraph StateGraph for the debate arena.

The same three phases as DebateArena, expressed as a declarative state
machine. A cancelled generation phase skips straight to finalize.

Graph topology:
    START → generate_entrants ──[cancelled?]──► finalize → END
                    │                              ▲
                    └──► run_tournament → synthesize
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from langgraph.graph import END, START, StateGraph

from agents.base import AnalystProfile
from agents.profiles import default_profiles
from orchestrator import nodes
from orchestrator.arena import ArenaResult
from orchestrator.events import ArenaEvent
from orchestrator.state import ArenaState


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------

def _after_generation(state: ArenaState) -> str:
    """Skip the tournament when generation was cancelled."""
    return "cancelled" if state.get("cancelled") else "proceed"


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------

def build_graph() -> Any:
    """
    Construct and compile the debate arena StateGraph.

    Returns a compiled graph ready for .invoke().
    """
    graph = StateGraph(ArenaState)

    graph.add_node("generate_entrants", nodes.generate_entrants)
    graph.add_node("run_tournament", nodes.run_tournament)
    graph.add_node("synthesize", nodes.synthesize)
    graph.add_node("finalize", nodes.finalize)

    graph.add_edge(START, "generate_entrants")
    graph.add_conditional_edges(
        "generate_entrants",
        _after_generation,
        {
            "cancelled": "finalize",
            "proceed": "run_tournament",
        },
    )
    graph.add_edge("run_tournament", "synthesize")
    graph.add_edge("synthesize", "finalize")
    graph.add_edge("finalize", END)

    return graph.compile()


# ---------------------------------------------------------------------------
# State ↔ ArenaResult
# ---------------------------------------------------------------------------

def _build_config(
    generator: Any,
    debater: Any,
    on_event: Callable[[ArenaEvent], None] | None = None,
    cancel: threading.Event | None = None,
) -> dict:
    """Build a LangGraph config dict carrying the non-serializable objects."""
    configurable: dict[str, Any] = {"generator": generator, "debater": debater}
    if on_event is not None:
        configurable["on_event"] = on_event
    if cancel is not None:
        configurable["cancel"] = cancel
    return {"configurable": configurable}


def _state_to_result(state: dict) -> ArenaResult:
    return ArenaResult(
        entrants=list(state.get("entrants", [])),
        generation_errors=list(state.get("generation_errors", [])),
        tournament=state.get("tournament"),
        recommendation=state.get("recommendation"),
        cancelled=bool(state.get("cancelled", False)),
        total_duration_ms=state.get("total_duration_ms", 0.0),
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def run_graph(
    market_data: Mapping[str, Any],
    generator: Any,
    debater: Any,
    profiles: Iterable[AnalystProfile] | None = None,
    on_event: Callable[[ArenaEvent], None] | None = None,
    cancel: threading.Event | None = None,
    current_price: float | None = None,
) -> ArenaResult:
    """
    Invoke the compiled graph and return an ArenaResult.

    Args:
        market_data: Opaque bundle passed through to the capabilities
        generator: ViewpointGenerator (or callable) producing entrants
        debater: TurnGenerator (or callable) producing debate turns
        profiles: Analyst profiles (default: the eight built-in analysts)
        on_event: Optional callback receiving every lifecycle event
        cancel: Optional token; setting it stops generation
        current_price: Used for upside in the recommendation

    Returns:
        ArenaResult, equivalent to DebateArena.run()
    """
    compiled = build_graph()
    config = _build_config(generator, debater, on_event=on_event, cancel=cancel)

    initial_state: dict[str, Any] = {
        "market_data": dict(market_data),
        "profiles": list(profiles) if profiles is not None else default_profiles(),
        "current_price": current_price,
        "start_time": time.time(),
        "events": [],
        "tournament": None,
        "recommendation": None,
    }

    final_state = compiled.invoke(initial_state, config=config)
    return _state_to_result(final_state)
