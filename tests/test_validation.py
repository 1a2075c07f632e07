"""
Tests for coercing capability responses into domain models.
"""

from __future__ import annotations

import json

import pytest

from agents.base import MatchContext, Methodology, Side, Stance, Turn
from orchestrator.errors import MalformedResponse
from orchestrator.validation import coerce_turn, coerce_viewpoint

VALID = {
    "stance": "buy",
    "confidence": 70,
    "price_target": {"bull": 130, "base": 110, "bear": 90},
    "bull_case": ["Pricing power"],
}


@pytest.fixture
def profile(profiles):
    return profiles[0]


@pytest.fixture
def context(make_viewpoint):
    return MatchContext(
        match_id="semifinal-1",
        round="semifinal",
        exchange=2,
        side=Side.BEAR,
        speaker=make_viewpoint("beary", stance="sell", methodology=Methodology.MACRO),
        opponent=make_viewpoint("bully"),
    )


class TestCoerceViewpoint:

    def test_mapping_bound_to_profile(self, profile):
        vp = coerce_viewpoint(VALID, profile)
        assert vp.analyst_id == profile.id
        assert vp.analyst_name == profile.name
        assert vp.methodology == profile.methodology
        assert vp.stance is Stance.BUY

    def test_json_string(self, profile):
        vp = coerce_viewpoint(json.dumps(VALID), profile)
        assert vp.confidence == 70

    def test_prose_wrapped_json(self, profile):
        vp = coerce_viewpoint(f"My take:\n```json\n{json.dumps(VALID)}\n```", profile)
        assert vp.bull_case == ["Pricing power"]

    def test_viewpoint_instance_passes(self, profile, make_viewpoint):
        original = make_viewpoint(profile.id, confidence=55)
        assert coerce_viewpoint(original, profile) == original

    def test_explicit_name_kept(self, profile):
        vp = coerce_viewpoint({**VALID, "analyst_name": "Guest"}, profile)
        assert vp.analyst_name == "Guest"

    def test_conflicting_id(self, profile):
        with pytest.raises(MalformedResponse, match="claims analyst_id"):
            coerce_viewpoint({**VALID, "analyst_id": "other"}, profile)

    @pytest.mark.parametrize("raw", [
        {**VALID, "confidence": -5},
        {**VALID, "stance": "moon"},
        {**VALID, "price_target": {"bull": 90, "base": 110, "bear": 130}},
        {"stance": "buy"},
        "no json here",
        42,
    ])
    def test_malformed(self, profile, raw):
        with pytest.raises(MalformedResponse):
            coerce_viewpoint(raw, profile)


class TestCoerceTurn:

    def test_plain_text(self, context):
        turn = coerce_turn("  Inflation and debt both point lower.  ", context)
        assert turn.content == "Inflation and debt both point lower."
        assert turn.side is Side.BEAR
        assert turn.speaker_id == "beary"
        assert turn.exchange == 2
        assert turn.data_points == ["Debt Levels"]
        assert 0 <= turn.argument_strength <= 100

    def test_supplied_signals_kept(self, context):
        turn = coerce_turn(
            {"content": "Short.", "data_points": ["Custom"], "argument_strength": 12}, context
        )
        assert turn.data_points == ["Custom"]
        assert turn.argument_strength == 12

    def test_exchange_taken_from_context(self, context):
        raw = Turn(side=Side.BEAR, speaker_id="beary", exchange=7, content="x", argument_strength=50)
        assert coerce_turn(raw, context).exchange == 2

    def test_wrong_speaker(self, context):
        with pytest.raises(MalformedResponse, match="attributed to 'bully'"):
            coerce_turn({"content": "Hi.", "speaker_id": "bully"}, context)

    def test_wrong_side(self, context):
        with pytest.raises(MalformedResponse, match="expected a bear turn"):
            coerce_turn({"content": "Hi.", "side": "bull"}, context)

    @pytest.mark.parametrize("raw", ["", "   ", {"content": None}, {"content": "x", "argument_strength": -1}, 3.5])
    def test_malformed(self, context, raw):
        with pytest.raises(MalformedResponse):
            coerce_turn(raw, context)
