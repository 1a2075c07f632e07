"""
Debate Engine — runs one match turn by turn.

    exchange 1:  bull ──► bear
    exchange 2:  bull ──► bear
    (final only) exchange 3: bull ──► bear
                     │
                     ▼
              score_match ──► decide_winner ──► Match

Turns are strictly sequential: each call to the turn capability sees the
full dialogue so far. Any failure (an exception from the capability or a
malformed turn) is fatal to the match and surfaces as TurnGenerationFailed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from agents.base import MatchContext, Side, Turn, resolve_capability
from config.settings import settings
from orchestrator.errors import MalformedResponse, TurnGenerationFailed
from orchestrator.events import MatchCompleted, TournamentEvent, TurnCompleted
from orchestrator.models import Match, MatchRound, Pairing
from orchestrator.scoring import decide_winner, extract_winning_arguments, score_match
from orchestrator.validation import coerce_turn

logger = logging.getLogger(__name__)

Emit = Callable[[TournamentEvent], None]


class DebateEngine:
    """Runs a pairing to completion and scores it."""

    def __init__(
        self,
        turn_generator: Any,
        turns_per_side: int | None = None,
        final_extra_exchanges: int | None = None,
    ):
        """
        Args:
            turn_generator: A TurnGenerator, or a callable (context, prior_turns) -> Turn
            turns_per_side: Exchanges in a regular match (default: settings.turns_per_side)
            final_extra_exchanges: Extra exchanges granted to the final
        """
        self._next_turn = resolve_capability(turn_generator, "next_turn")
        self.turns_per_side = (
            turns_per_side if turns_per_side is not None else settings.turns_per_side
        )
        self.final_extra_exchanges = (
            final_extra_exchanges
            if final_extra_exchanges is not None
            else settings.final_extra_exchanges
        )
        if self.turns_per_side < 1:
            raise ValueError(f"turns_per_side must be >= 1, got {self.turns_per_side}")
        if self.final_extra_exchanges < 0:
            raise ValueError(
                f"final_extra_exchanges must be >= 0, got {self.final_extra_exchanges}"
            )

    def exchanges_for(self, round: MatchRound) -> int:
        if round is MatchRound.FINAL:
            return self.turns_per_side + self.final_extra_exchanges
        return self.turns_per_side

    def _take_turn(
        self, context: MatchContext, prior_turns: tuple[Turn, ...]
    ) -> Turn:
        try:
            raw = self._next_turn(context, prior_turns)
            return coerce_turn(raw, context)
        except MalformedResponse as e:
            raise TurnGenerationFailed(
                context.match_id, context.side.value, context.exchange, str(e)
            ) from e
        except Exception as e:
            reason = str(e) or type(e).__name__
            raise TurnGenerationFailed(
                context.match_id, context.side.value, context.exchange, reason
            ) from e

    def run(
        self,
        pairing: Pairing,
        market_data: Mapping[str, Any],
        emit: Emit | None = None,
    ) -> Match:
        """
        Debate ``pairing`` and return the completed Match.

        Emits TurnCompleted after every turn and MatchCompleted once the
        winner is known.

        Raises:
            TurnGenerationFailed: if any turn could not be produced.
        """
        t_start = time.time()
        match_id = pairing.match_id
        exchanges = self.exchanges_for(pairing.round)
        logger.info(
            f"{match_id}: {pairing.bull.display_name} (bull) vs "
            f"{pairing.bear.display_name} (bear), {exchanges} exchange(s)"
        )

        turns: tuple[Turn, ...] = ()
        for exchange in range(1, exchanges + 1):
            for side in (Side.BULL, Side.BEAR):
                context = MatchContext(
                    match_id=match_id,
                    round=pairing.round.value,
                    exchange=exchange,
                    side=side,
                    speaker=pairing.viewpoint(side),
                    opponent=pairing.viewpoint(side.other()),
                    market_data=market_data,
                )
                turn = self._take_turn(context, turns)
                turns = turns + (turn,)
                logger.debug(
                    f"  {match_id} turn {len(turns)} ({side.value}): "
                    f"strength {turn.argument_strength:.0f}, "
                    f"{len(turn.data_points)} data point(s)"
                )
                if emit:
                    emit(TurnCompleted(
                        match_id=match_id,
                        round=pairing.round,
                        turn_number=len(turns),
                        turn=turn,
                    ))

        scores = score_match(turns, pairing.bull, pairing.bear)
        winner, tie_break = decide_winner(scores, turns, pairing.bull, pairing.bear)
        match = Match(
            match_id=match_id,
            round=pairing.round,
            index=pairing.index,
            bull=pairing.bull,
            bear=pairing.bear,
            turns=turns,
            winner=winner,
            scores=scores,
            tie_break=tie_break,
            winning_arguments=tuple(
                extract_winning_arguments(turns, winner, pairing.viewpoint(winner))
            ),
        )

        elapsed_ms = (time.time() - t_start) * 1000
        logger.info(
            f"{match_id}: {match.winning_viewpoint.display_name} wins "
            f"{scores.total(winner):.2f} to {scores.total(winner.other()):.2f}"
            + (f" (tie-break: {tie_break})" if tie_break else "")
            + f" [{elapsed_ms:.0f}ms]"
        )
        if emit:
            emit(MatchCompleted(match=match))
        return match
