"""
Tests for the TournamentScheduler: bracket shape, round barriers, byes,
fail-fast and determinism.
"""

from __future__ import annotations

import pytest

from config.settings import settings
from orchestrator.debate import DebateEngine
from orchestrator.errors import InsufficientEntrants, TournamentAborted, TurnGenerationFailed
from orchestrator.events import (
    MatchCompleted,
    MatchStarted,
    TournamentCompleted,
    TournamentFailed,
    TurnCompleted,
)
from orchestrator.models import MatchRound, TournamentResult
from orchestrator.scheduler import TournamentScheduler

ROUND_RANK = {MatchRound.QUARTERFINAL: 0, MatchRound.SEMIFINAL: 1, MatchRound.FINAL: 2}


def _scheduler(debater, match_concurrency=1, **engine_kwargs) -> TournamentScheduler:
    return TournamentScheduler(
        DebateEngine(debater, **engine_kwargs), match_concurrency=match_concurrency
    )


def _round_of(event) -> MatchRound:
    if isinstance(event, MatchCompleted):
        return event.match.round
    return event.round


class TestFullBracket:

    def test_eight_entrants_seven_matches(self, field_of_eight, debater):
        result = _scheduler(debater).run(field_of_eight, {})
        assert isinstance(result, TournamentResult)
        assert len(result.quarterfinals) == 4
        assert len(result.semifinals) == 2
        assert result.final is not None
        assert len(result.all_matches) == 7
        assert result.is_complete

    def test_top_seed_wins_when_strength_tracks_confidence(self, field_of_eight, debater):
        result = _scheduler(debater).run(field_of_eight, {})
        assert result.champion.analyst_id == "warren"
        assert [m.winning_viewpoint.analyst_id for m in result.quarterfinals] == [
            "warren", "ray", "cathie", "jim",
        ]
        assert [m.winning_viewpoint.analyst_id for m in result.semifinals] == ["warren", "cathie"]

    def test_all_matches_ordered_by_round_then_index(self, field_of_eight, debater):
        result = _scheduler(debater).run(field_of_eight, {})
        keys = [(ROUND_RANK[m.round], m.index) for m in result.all_matches]
        assert keys == sorted(keys)

    def test_upset_winner_advances(self, field_of_eight, debater_cls):
        # devil argues far better than anyone else
        debater = debater_cls(strengths={"devil": 100.0, "warren": 10.0})
        result = _scheduler(debater).run(field_of_eight, {})
        assert result.quarterfinals[0].winning_viewpoint.analyst_id == "devil"
        assert result.semifinals[0].bull.analyst_id in ("devil", "ray")
        assert "warren" not in {m.winning_viewpoint.analyst_id for m in result.all_matches}

    def test_final_has_extra_exchanges(self, field_of_eight, debater):
        result = _scheduler(debater, turns_per_side=2, final_extra_exchanges=1).run(
            field_of_eight, {}
        )
        assert all(len(m.turns) == 4 for m in result.quarterfinals + result.semifinals)
        assert len(result.final.turns) == 6


class TestEventStream:

    def test_round_barrier(self, field_of_eight, debater):
        events = list(_scheduler(debater).stream(field_of_eight, {}))
        ranks = [ROUND_RANK[_round_of(e)] for e in events if not isinstance(e, TournamentCompleted)]
        assert ranks == sorted(ranks)

        first_semi = next(
            i for i, e in enumerate(events)
            if isinstance(e, MatchStarted) and e.round is MatchRound.SEMIFINAL
        )
        qf_completed = [
            i for i, e in enumerate(events)
            if isinstance(e, MatchCompleted) and e.match.round is MatchRound.QUARTERFINAL
        ]
        assert len(qf_completed) == 4
        assert max(qf_completed) < first_semi

    def test_event_shape_per_match(self, field_of_eight, debater):
        events = list(_scheduler(debater).stream(field_of_eight, {}))
        assert isinstance(events[-1], TournamentCompleted)
        assert sum(isinstance(e, MatchStarted) for e in events) == 7
        assert sum(isinstance(e, MatchCompleted) for e in events) == 7
        # 6 regular matches x 4 turns + final x 6 turns
        assert sum(isinstance(e, TurnCompleted) for e in events) == 30

        started = events[0]
        assert isinstance(started, MatchStarted)
        assert (started.round, started.index) == (MatchRound.QUARTERFINAL, 1)
        assert started.match_id == "quarterfinal-1"

    def test_concurrent_matches_keep_round_barrier(self, field_of_eight, debater):
        events = list(_scheduler(debater, match_concurrency=4).stream(field_of_eight, {}))
        ranks = [ROUND_RANK[_round_of(e)] for e in events if not isinstance(e, TournamentCompleted)]
        assert ranks == sorted(ranks)
        result = events[-1].result
        assert [m.index for m in result.quarterfinals] == [1, 2, 3, 4]

    def test_turns_of_a_match_stay_in_order(self, field_of_eight, debater):
        events = list(_scheduler(debater, match_concurrency=4).stream(field_of_eight, {}))
        by_match = {}
        for e in events:
            if isinstance(e, TurnCompleted):
                by_match.setdefault(e.match_id, []).append(e.turn_number)
        assert all(numbers == sorted(numbers) for numbers in by_match.values())

    def test_on_event_callback(self, field_of_eight, debater):
        seen = []
        _scheduler(debater).run(field_of_eight, {}, on_event=seen.append)
        assert isinstance(seen[-1], TournamentCompleted)


class TestPartialField:

    def test_seven_entrants_top_seed_bye(self, field_of_eight, debater):
        seven = [v for v in field_of_eight if v.analyst_id != "devil"]
        result = _scheduler(debater).run(seven, {})
        assert len(result.all_matches) == 6
        assert [m.index for m in result.quarterfinals] == [2, 3, 4]
        assert "warren" not in {
            vp.analyst_id for m in result.quarterfinals for vp in (m.bull, m.bear)
        }
        assert result.semifinals[0].bull.analyst_id == "warren"
        assert result.champion.analyst_id == "warren"

    def test_two_entrants_play_only_the_final(self, make_viewpoint, debater):
        pair = [make_viewpoint("a", confidence=80), make_viewpoint("b", confidence=20)]
        result = _scheduler(debater).run(pair, {})
        assert result.quarterfinals == ()
        assert result.semifinals == ()
        assert result.final.round is MatchRound.FINAL
        assert result.champion.analyst_id == "a"

    def test_below_minimum_rejected(self, make_viewpoint, debater):
        with pytest.raises(InsufficientEntrants) as exc_info:
            list(_scheduler(debater).stream([make_viewpoint("solo")], {}))
        assert exc_info.value.required == 2

    def test_below_minimum_ends_stream_with_failure_event(self, make_viewpoint, debater):
        events = []
        with pytest.raises(InsufficientEntrants):
            for event in _scheduler(debater).stream([make_viewpoint("solo")], {}):
                events.append(event)
        assert len(events) == 1
        failed = events[0]
        assert isinstance(failed, TournamentFailed)
        assert failed.round is None
        assert failed.match_id is None
        assert "only 1 succeeded" in failed.error

    def test_run_forwards_failure_event(self, make_viewpoint, debater):
        seen = []
        with pytest.raises(InsufficientEntrants):
            _scheduler(debater).run([], {}, on_event=seen.append)
        assert [type(e) for e in seen] == [TournamentFailed]


class TestConfiguration:

    @pytest.mark.parametrize("min_entrants", [1, 0, -3])
    def test_min_entrants_below_two_rejected(self, debater, min_entrants):
        with pytest.raises(ValueError, match="min_entrants"):
            TournamentScheduler(DebateEngine(debater), min_entrants=min_entrants)

    def test_zero_match_concurrency_rejected(self, debater):
        with pytest.raises(ValueError, match="match_concurrency"):
            TournamentScheduler(DebateEngine(debater), match_concurrency=0)

    def test_defaults_from_settings(self, debater):
        scheduler = TournamentScheduler(DebateEngine(debater))
        assert scheduler.min_entrants == settings.min_entrants
        assert scheduler.match_concurrency == settings.match_concurrency


class TestFailFast:

    def test_match_failure_aborts_tournament(self, field_of_eight, debater_cls):
        events = []
        scheduler = _scheduler(debater_cls(fail_for="ray"))
        with pytest.raises(TournamentAborted) as exc_info:
            for event in scheduler.stream(field_of_eight, {}):
                events.append(event)

        err = exc_info.value
        assert err.round == "quarterfinal"
        assert err.match_id == "quarterfinal-2"
        assert isinstance(err.__cause__, TurnGenerationFailed)

        assert isinstance(events[-1], TournamentFailed)
        assert events[-1].match_id == "quarterfinal-2"
        assert not any(isinstance(e, TournamentCompleted) for e in events)
        assert not any(_round_of(e) is MatchRound.SEMIFINAL for e in events)
        # quarterfinals 3 and 4 never started
        started = [e.match_id for e in events if isinstance(e, MatchStarted)]
        assert started == ["quarterfinal-1", "quarterfinal-2"]

    def test_run_raises_without_partial_result(self, field_of_eight, debater_cls):
        with pytest.raises(TournamentAborted):
            _scheduler(debater_cls(fail_for="warren")).run(field_of_eight, {})


class TestDeterminism:

    def test_same_inputs_same_bracket(self, field_of_eight, debater_cls):
        def outline(entrants):
            result = _scheduler(debater_cls()).run(entrants, {})
            return [
                (m.match_id, m.bull.analyst_id, m.bear.analyst_id, m.winner)
                for m in result.all_matches
            ]

        assert outline(field_of_eight) == outline(list(reversed(field_of_eight)))
