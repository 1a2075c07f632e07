"""
End-to-end tests for DebateArena with the offline replay capabilities.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from agents.base import MatchContext, Side
from agents.replay import ReplayViewpointGenerator, ThesisReplayDebater
from orchestrator.arena import ArenaResult, DebateArena
from orchestrator.errors import InsufficientEntrants
from orchestrator.events import (
    EntrantCompleted,
    EntrantFailed,
    MatchCompleted,
    TournamentCompleted,
    TournamentFailed,
)
from orchestrator.models import FinalRecommendation

SAMPLE_FILE = Path(__file__).resolve().parent.parent / "scripts" / "sample_viewpoints.json"


@pytest.fixture
def replay(field_of_eight):
    return ReplayViewpointGenerator(field_of_eight)


class TestReplayCapabilities:

    def test_generator_serves_by_id(self, replay, profiles):
        assert replay.analyst_ids == [p.id for p in profiles]
        assert replay.generate(profiles[2], {}).analyst_id == profiles[2].id

    def test_unknown_profile(self, profiles):
        with pytest.raises(LookupError, match="No recorded viewpoint"):
            ReplayViewpointGenerator({}).generate(profiles[0], {})

    def test_mapping_entries_copied(self, profiles):
        recorded = {"stance": "buy"}
        gen = ReplayViewpointGenerator({profiles[0].id: recorded})
        served = gen.generate(profiles[0], {})
        served["stance"] = "sell"
        assert recorded["stance"] == "buy"

    def test_from_file(self, tmp_path, profiles):
        path = tmp_path / "viewpoints.json"
        path.write_text(json.dumps({"viewpoints": [
            {"analyst_id": profiles[0].id, "stance": "hold"},
        ]}))
        gen = ReplayViewpointGenerator.from_file(path)
        assert gen.analyst_ids == [profiles[0].id]

    def test_debater_argues_from_thesis(self, make_viewpoint):
        bull = make_viewpoint("b", bull_case=["First point.", "Second point."])
        bear = make_viewpoint("s", stance="sell")
        debater = ThesisReplayDebater()

        def context(side, exchange):
            speaker, opponent = (bull, bear) if side is Side.BULL else (bear, bull)
            return MatchContext(
                match_id="final-1", round="final", exchange=exchange,
                side=side, speaker=speaker, opponent=opponent,
            )

        opening = debater.next_turn(context(Side.BULL, 1), [])
        assert opening.endswith("First point.")
        assert "bullish case" in opening
        assert "Second point." in debater.next_turn(context(Side.BULL, 2), [])
        assert "First point." in debater.next_turn(context(Side.BULL, 3), [])
        # no bear case or risks recorded
        assert "Risk factors warrant caution." in debater.next_turn(context(Side.BEAR, 1), [])


class TestArenaRun:

    def test_full_run(self, replay):
        result = DebateArena(replay, ThesisReplayDebater()).run({"ticker": "ACME"})
        assert isinstance(result, ArenaResult)
        assert len(result.entrants) == 8
        assert result.generation_errors == []
        assert result.tournament.is_complete
        assert len(result.tournament.all_matches) == 7
        assert isinstance(result.recommendation, FinalRecommendation)
        assert result.recommendation.champion_id == result.champion.analyst_id
        assert result.cancelled is False
        assert result.total_duration_ms > 0

    def test_sample_file_run(self):
        data = json.loads(SAMPLE_FILE.read_text())
        gen = ReplayViewpointGenerator.from_file(SAMPLE_FILE)
        result = DebateArena(gen, ThesisReplayDebater()).run(
            data["market_data"], current_price=data["market_data"]["price"]
        )
        rec = result.recommendation
        assert rec.entrants_considered == 8
        assert rec.upside_pct is not None
        opposed = {
            v.analyst_id for v in result.entrants
            if v.direction is not result.champion.direction
        }
        assert {d.analyst_id for d in rec.dissenting_views} == opposed

    def test_event_order(self, replay):
        events = []
        DebateArena(replay, ThesisReplayDebater()).run({}, on_event=events.append)
        assert all(isinstance(e, EntrantCompleted) for e in events[:8])
        assert sum(isinstance(e, MatchCompleted) for e in events) == 7
        assert isinstance(events[-1], TournamentCompleted)

    def test_missing_recording_is_entrant_failure(self, field_of_eight):
        gen = ReplayViewpointGenerator(field_of_eight[:-1])
        events = []
        result = DebateArena(gen, ThesisReplayDebater()).run({}, on_event=events.append)
        missing = field_of_eight[-1].analyst_id

        assert [e.analyst_id for e in result.generation_errors] == [missing]
        assert any(isinstance(e, EntrantFailed) for e in events)
        assert len(result.tournament.all_matches) == 6

    def test_to_dict(self, field_of_eight):
        gen = ReplayViewpointGenerator(field_of_eight[:-1])
        data = DebateArena(gen, ThesisReplayDebater()).run({}).to_dict()
        assert len(data["entrants"]) == 7
        assert data["generation_errors"][0]["analyst_id"] == field_of_eight[-1].analyst_id
        assert "No recorded viewpoint" in data["generation_errors"][0]["error"]
        assert data["tournament"]["champion"]["analyst_id"] == data["recommendation"]["champion_id"]
        assert data["cancelled"] is False
        json.dumps(data)

    def test_all_generation_failed(self):
        with pytest.raises(InsufficientEntrants):
            DebateArena(ReplayViewpointGenerator({}), ThesisReplayDebater()).run({})

    def test_single_entrant_cannot_hold_a_tournament(self, field_of_eight):
        gen = ReplayViewpointGenerator(field_of_eight[:1])
        with pytest.raises(InsufficientEntrants) as exc_info:
            DebateArena(gen, ThesisReplayDebater()).run({})
        assert exc_info.value.required == 2

    def test_single_entrant_stream_ends_with_failure_event(self, field_of_eight):
        gen = ReplayViewpointGenerator(field_of_eight[:1])
        events = []
        with pytest.raises(InsufficientEntrants):
            DebateArena(gen, ThesisReplayDebater()).run({}, on_event=events.append)
        assert sum(isinstance(e, EntrantCompleted) for e in events) == 1
        assert sum(isinstance(e, EntrantFailed) for e in events) == 7
        assert isinstance(events[-1], TournamentFailed)
        assert events[-1].round is None

    def test_min_entrants_of_one_rejected(self, replay):
        with pytest.raises(ValueError, match="min_entrants"):
            DebateArena(replay, ThesisReplayDebater(), min_entrants=1)


class TestArenaCancellation:

    def test_cancel_before_start(self, replay, debater):
        cancel = threading.Event()
        cancel.set()
        result = DebateArena(replay, debater).run({}, cancel=cancel)
        assert result.cancelled is True
        assert result.entrants == []
        assert result.tournament is None
        assert result.recommendation is None
        assert debater.contexts == []

    def test_cancel_mid_generation_skips_tournament(self, field_of_eight, profiles, gated_generator_cls, debater):
        gen = gated_generator_cls({v.analyst_id: v for v in field_of_eight}, [profiles[0].id])
        cancel = threading.Event()
        events = []

        def on_event(event):
            events.append(event)
            cancel.set()

        try:
            result = DebateArena(gen, debater, generation_concurrency=2).run(
                {}, cancel=cancel, on_event=on_event
            )
        finally:
            gen.gate.set()

        assert result.cancelled is True
        assert [v.analyst_id for v in result.entrants] == [profiles[0].id]
        assert result.tournament is None
        assert not any(isinstance(e, MatchCompleted) for e in events)
        assert debater.contexts == []

    def test_cancel_after_field_complete_still_plays(self, replay):
        cancel = threading.Event()

        def on_event(event):
            if isinstance(event, EntrantCompleted) and event.completed == event.total:
                cancel.set()

        result = DebateArena(replay, ThesisReplayDebater()).run({}, cancel=cancel, on_event=on_event)
        assert cancel.is_set()
        assert result.cancelled is False
        assert len(result.entrants) == 8
        assert result.tournament.is_complete
        assert result.recommendation is not None
