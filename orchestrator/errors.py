"""
Error taxonomy for the debate arena.

    ArenaError
    ├── EntrantGenerationFailed   one profile failed; recoverable, collected
    ├── MalformedResponse         a capability returned a bad shape or range
    ├── InsufficientEntrants      not enough viewpoints to proceed; fatal
    ├── TurnGenerationFailed      a debate turn failed; fatal to the match
    └── TournamentAborted         the single tournament-level error

Per-entrant failures are collected by the generation coordinator and never
raised past it. Everything else propagates to the caller.
"""

from __future__ import annotations


class ArenaError(Exception):
    """Base class for all debate arena errors."""


class EntrantGenerationFailed(ArenaError):
    """Viewpoint generation failed for one analyst profile."""

    def __init__(self, analyst_id: str, reason: str):
        self.analyst_id = analyst_id
        self.reason = reason
        super().__init__(f"Viewpoint generation failed for '{analyst_id}': {reason}")


class MalformedResponse(ArenaError):
    """A generation or turn result failed shape/range validation."""


class InsufficientEntrants(ArenaError):
    """Too few viewpoints succeeded for the next stage to run."""

    def __init__(self, succeeded: int, required: int):
        self.succeeded = succeeded
        self.required = required
        super().__init__(
            f"Need at least {required} viewpoint(s), only {succeeded} succeeded"
        )


class TurnGenerationFailed(ArenaError):
    """The turn capability failed (or returned garbage) mid-match."""

    def __init__(self, match_id: str, side: str, exchange: int, reason: str):
        self.match_id = match_id
        self.side = side
        self.exchange = exchange
        self.reason = reason
        super().__init__(
            f"Turn generation failed in {match_id} ({side}, exchange {exchange}): {reason}"
        )


class TournamentAborted(ArenaError):
    """A match failed and, by fail-fast policy, took the tournament with it."""

    def __init__(self, round: str, match_id: str | None, reason: str):
        self.round = round
        self.match_id = match_id
        self.reason = reason
        where = f"{match_id}" if match_id else round
        super().__init__(f"Tournament aborted during {where}: {reason}")
