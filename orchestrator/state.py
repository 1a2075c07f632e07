"""
ArenaState — typed state for the LangGraph debate arena graph.

This TypedDict flows through every node. ``events`` carries an Annotated
reducer so each node appends the lifecycle events it produced instead of
overwriting the ones before it.
"""

from __future__ import annotations

import operator
from typing import Annotated, Any

from typing_extensions import TypedDict

from agents.base import AnalystProfile, Viewpoint
from orchestrator.errors import EntrantGenerationFailed
from orchestrator.events import ArenaEvent
from orchestrator.models import FinalRecommendation, TournamentResult


class ArenaState(TypedDict, total=False):
    """
    State flowing through the debate arena StateGraph.

    Capabilities, the event callback and the cancel token are not stored
    here; they travel in config["configurable"].
    """

    # -- Inputs (set once at graph invocation) --
    market_data: dict[str, Any]
    profiles: list[AnalystProfile]
    current_price: float | None
    start_time: float

    # -- Phase 1: generation --
    entrants: list[Viewpoint]
    generation_errors: list[EntrantGenerationFailed]
    cancelled: bool

    # -- Phase 2: tournament --
    tournament: TournamentResult | None

    # -- Phase 3: synthesis --
    recommendation: FinalRecommendation | None

    # -- Accumulated across nodes --
    events: Annotated[list[ArenaEvent], operator.add]

    # -- Finalize --
    total_duration_ms: float
