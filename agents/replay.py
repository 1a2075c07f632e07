"""
Offline capabilities that replay canned content.

    ReplayViewpointGenerator   returns a pre-recorded viewpoint per analyst
    ThesisReplayDebater        argues each turn from the speaker's own thesis

Neither calls a model, so a full arena run is deterministic and free. They
back the demo script and make convenient fixtures.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from agents.base import (
    AnalystProfile,
    MatchContext,
    Side,
    Turn,
    TurnGenerator,
    Viewpoint,
    ViewpointGenerator,
)

logger = logging.getLogger(__name__)

_DEFAULT_BULL_ARGUMENT = "The fundamentals support upside potential."
_DEFAULT_BEAR_ARGUMENT = "Risk factors warrant caution."


class ReplayViewpointGenerator(ViewpointGenerator):
    """Serves recorded viewpoints keyed by analyst_id."""

    def __init__(self, viewpoints: Mapping[str, Any] | Iterable[Any]):
        if isinstance(viewpoints, Mapping):
            self._viewpoints = dict(viewpoints)
        else:
            self._viewpoints = {}
            for item in viewpoints:
                key = item.analyst_id if isinstance(item, Viewpoint) else item["analyst_id"]
                self._viewpoints[key] = item

    @classmethod
    def from_file(cls, path: str | Path) -> "ReplayViewpointGenerator":
        """Load a JSON list of viewpoints, or an object keyed by analyst_id."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict) and "viewpoints" in data:
            data = data["viewpoints"]
        return cls(data)

    @property
    def analyst_ids(self) -> list[str]:
        return list(self._viewpoints)

    def generate(self, profile: AnalystProfile, market_data: Mapping[str, Any]) -> Any:
        try:
            recorded = self._viewpoints[profile.id]
        except KeyError:
            raise LookupError(f"No recorded viewpoint for '{profile.id}'") from None
        if isinstance(recorded, Mapping):
            return dict(recorded)
        return recorded


class ThesisReplayDebater(TurnGenerator):
    """
    Builds each turn from the speaker's thesis arguments.

    Exchange N uses the Nth argument (cycling) from the bull case when
    arguing bull, and from the bear case (then risks) when arguing bear.
    The text goes back as plain content so strength and data points are
    derived from it like any other turn.
    """

    def _arguments(self, speaker: Viewpoint, side: Side) -> list[str]:
        if side is Side.BULL:
            return speaker.bull_case or [_DEFAULT_BULL_ARGUMENT]
        return speaker.bear_case or speaker.risks or [_DEFAULT_BEAR_ARGUMENT]

    def next_turn(self, context: MatchContext, prior_turns: Sequence[Turn]) -> str:
        speaker = context.speaker
        arguments = self._arguments(speaker, context.side)
        argument = arguments[(context.exchange - 1) % len(arguments)]
        methodology = speaker.methodology.value

        if context.side is Side.BULL:
            content = f"Based on my {methodology} analysis, I maintain the bullish case. {argument}"
        else:
            content = f"My {methodology} framework highlights concerns. {argument}"

        if prior_turns:
            content += f" That does not answer the {context.side.other().value} case made by {context.opponent.display_name}."
        return content
