"""
Shared fixtures: viewpoint builders and hand-written mock capabilities.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping, Sequence
from typing import Any

import pytest

from agents.base import (
    AnalystProfile,
    MatchContext,
    Methodology,
    PriceTarget,
    Stance,
    Turn,
    Viewpoint,
)
from agents.profiles import default_profiles

# analyst_id -> confidence. Seeds follow this order: warren is #1, devil #8.
CONFIDENCE_BY_ID = {
    "warren": 90.0,
    "cathie": 80.0,
    "jim": 70.0,
    "ray": 60.0,
    "elon": 50.0,
    "karen": 40.0,
    "quant": 30.0,
    "devil": 20.0,
}


def build_viewpoint(
    analyst_id: str,
    stance: Stance | str = Stance.BUY,
    confidence: float = 60.0,
    methodology: Methodology = Methodology.VALUE,
    price_target: tuple[float, float, float] = (120.0, 100.0, 80.0),
    **overrides: Any,
) -> Viewpoint:
    bull, base, bear = price_target
    data = {
        "analyst_id": analyst_id,
        "analyst_name": analyst_id.title(),
        "methodology": methodology,
        "stance": stance,
        "confidence": confidence,
        "price_target": PriceTarget(bull=bull, base=base, bear=bear),
        "bull_case": [f"{analyst_id} bull point"],
        "bear_case": [],
        "risks": [],
        "catalysts": [],
        "summary": f"{analyst_id} summary",
    }
    data.update(overrides)
    return Viewpoint(**data)


@pytest.fixture
def make_viewpoint():
    return build_viewpoint


@pytest.fixture
def profiles() -> list[AnalystProfile]:
    return default_profiles()


@pytest.fixture
def field_of_eight(profiles) -> list[Viewpoint]:
    """Eight buy-side viewpoints with distinct confidences (90 down to 20)."""
    return [
        build_viewpoint(
            p.id,
            confidence=CONFIDENCE_BY_ID[p.id],
            methodology=p.methodology,
        )
        for p in profiles
    ]


# ---------------------------------------------------------------------------
# Mock capabilities
# ---------------------------------------------------------------------------

class MockGenerator:
    """
    Returns canned viewpoints by profile id.

    Tracks the peak number of concurrent calls. Ids in ``fail_ids`` raise;
    ``delays`` holds per-id sleeps in seconds.
    """

    def __init__(
        self,
        viewpoints: Mapping[str, Any],
        fail_ids: Sequence[str] = (),
        delays: Mapping[str, float] | None = None,
        default_delay: float = 0.0,
    ):
        self.viewpoints = dict(viewpoints)
        self.fail_ids = set(fail_ids)
        self.delays = dict(delays or {})
        self.default_delay = default_delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def generate(self, profile: AnalystProfile, market_data: Mapping[str, Any]) -> Any:
        with self._lock:
            self.calls.append(profile.id)
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            delay = self.delays.get(profile.id, self.default_delay)
            if delay:
                time.sleep(delay)
            if profile.id in self.fail_ids:
                raise RuntimeError(f"model unavailable for {profile.id}")
            return self.viewpoints[profile.id]
        finally:
            with self._lock:
                self.in_flight -= 1


class GatedGenerator:
    """Profiles in ``open_ids`` return at once; the rest block on ``gate``."""

    def __init__(self, viewpoints: Mapping[str, Viewpoint], open_ids: Sequence[str]):
        self.viewpoints = dict(viewpoints)
        self.open_ids = set(open_ids)
        self.gate = threading.Event()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def generate(self, profile: AnalystProfile, market_data: Mapping[str, Any]) -> Viewpoint:
        with self._lock:
            self.calls.append(profile.id)
        if profile.id not in self.open_ids:
            self.gate.wait(timeout=5)
        return self.viewpoints[profile.id]


class StrengthDebater:
    """
    Returns neutral turns whose strength is looked up by speaker.

    The content avoids risk and catalyst vocabulary, so a side's total is
    driven only by its strength and its viewpoint's confidence.
    """

    def __init__(
        self,
        strengths: Mapping[str, float] | None = None,
        fail_for: str | None = None,
    ):
        self.strengths = dict(strengths or {})
        self.fail_for = fail_for
        self.contexts: list[MatchContext] = []
        self.prior_lengths: list[int] = []
        self._lock = threading.Lock()

    def next_turn(self, context: MatchContext, prior_turns: Sequence[Turn]) -> dict:
        with self._lock:
            self.contexts.append(context)
            self.prior_lengths.append(len(prior_turns))
        speaker = context.speaker.analyst_id
        if speaker == self.fail_for:
            raise RuntimeError(f"turn model crashed for {speaker}")
        return {
            "content": f"{speaker} argues exchange {context.exchange}.",
            "data_points": [],
            "argument_strength": self.strengths.get(speaker, context.speaker.confidence),
        }


@pytest.fixture
def mock_generator(field_of_eight):
    return MockGenerator({v.analyst_id: v for v in field_of_eight})


@pytest.fixture
def debater():
    return StrengthDebater()


@pytest.fixture
def generator_cls():
    return MockGenerator


@pytest.fixture
def gated_generator_cls():
    return GatedGenerator


@pytest.fixture
def debater_cls():
    return StrengthDebater
