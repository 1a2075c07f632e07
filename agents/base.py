"""
Entrant data model and capability interfaces for the debate arena.

An entrant is one analyst profile's generated Viewpoint. Content itself
(thesis text, debate dialogue) comes from two external capabilities:

    ViewpointGenerator.generate(profile, market_data)   -> Viewpoint
    TurnGenerator.next_turn(context, prior_turns)        -> Turn

The orchestrator only depends on these interfaces, so any engine can sit
behind them (an LLM, a replay of canned content, a test mock).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config.settings import settings

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Methodology(str, Enum):
    VALUE = "value"
    GROWTH = "growth"
    TECHNICAL = "technical"
    MACRO = "macro"
    SENTIMENT = "sentiment"
    RISK = "risk"
    QUANT = "quant"
    CONTRARIAN = "contrarian"


class Direction(str, Enum):
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"

    def opposite(self) -> "Direction":
        if self is Direction.BULLISH:
            return Direction.BEARISH
        if self is Direction.BEARISH:
            return Direction.BULLISH
        return Direction.NEUTRAL


class Stance(str, Enum):
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    STRONG_SELL = "strong_sell"

    @property
    def score(self) -> int:
        """5 for strong_buy down to 1 for strong_sell."""
        return _STANCE_SCORES[self]

    @property
    def direction(self) -> Direction:
        if self in (Stance.STRONG_BUY, Stance.BUY):
            return Direction.BULLISH
        if self in (Stance.SELL, Stance.STRONG_SELL):
            return Direction.BEARISH
        return Direction.NEUTRAL

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").upper()


_STANCE_SCORES = {
    Stance.STRONG_BUY: 5,
    Stance.BUY: 4,
    Stance.HOLD: 3,
    Stance.SELL: 2,
    Stance.STRONG_SELL: 1,
}


class Side(str, Enum):
    BULL = "bull"
    BEAR = "bear"

    def other(self) -> "Side":
        return Side.BEAR if self is Side.BULL else Side.BULL


# ---------------------------------------------------------------------------
# Entrant models
# ---------------------------------------------------------------------------

class AnalystProfile(BaseModel):
    """Identity and methodology of one tournament entrant. Supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    title: str = ""
    avatar: str = ""
    methodology: Methodology
    description: str = ""


class PriceTarget(BaseModel):
    """Three-point price target for a fixed horizon."""

    model_config = ConfigDict(frozen=True)

    bull: float = Field(ge=0.0)
    base: float = Field(ge=0.0)
    bear: float = Field(ge=0.0)
    horizon: str = Field(default_factory=lambda: settings.price_target_horizon)

    @model_validator(mode="after")
    def _check_ordering(self) -> "PriceTarget":
        if not (self.bear <= self.base <= self.bull):
            msg = (
                f"price target must satisfy bear <= base <= bull, "
                f"got bear={self.bear} base={self.base} bull={self.bull}"
            )
            raise ValueError(msg)
        return self


class Viewpoint(BaseModel):
    """One analyst's investment stance for the tournament (an entrant)."""

    model_config = ConfigDict(frozen=True)

    analyst_id: str = Field(min_length=1)
    analyst_name: str = ""
    methodology: Methodology
    stance: Stance
    confidence: float = Field(ge=0.0, le=100.0, description="0 = no conviction, 100 = max")
    price_target: PriceTarget
    bull_case: list[str] = Field(default_factory=list)
    bear_case: list[str] = Field(default_factory=list, description="Acknowledged bearish arguments")
    risks: list[str] = Field(default_factory=list)
    catalysts: list[str] = Field(default_factory=list)
    summary: str = ""

    @property
    def direction(self) -> Direction:
        return self.stance.direction

    @property
    def display_name(self) -> str:
        return self.analyst_name or self.analyst_id


class Turn(BaseModel):
    """One dialogue exchange inside a match."""

    model_config = ConfigDict(frozen=True)

    side: Side
    speaker_id: str
    exchange: int = Field(ge=1, description="1-based exchange number within the match")
    content: str = Field(min_length=1)
    data_points: list[str] = Field(default_factory=list)
    argument_strength: float = Field(ge=0.0, le=100.0)


class MatchContext(BaseModel):
    """Everything the turn capability is told about the turn it must produce."""

    model_config = ConfigDict(frozen=True)

    match_id: str
    round: str
    exchange: int
    side: Side
    speaker: Viewpoint
    opponent: Viewpoint
    market_data: Mapping[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Capability interfaces
# ---------------------------------------------------------------------------

class ViewpointGenerator(ABC):
    """Produces one entrant Viewpoint per analyst profile. May raise."""

    @abstractmethod
    def generate(
        self, profile: AnalystProfile, market_data: Mapping[str, Any]
    ) -> Viewpoint | Mapping[str, Any] | str:
        """Return a Viewpoint, a mapping of its fields, or a JSON string."""
        ...


class TurnGenerator(ABC):
    """Produces the next debate turn given the full prior history. May raise."""

    @abstractmethod
    def next_turn(
        self, context: MatchContext, prior_turns: Sequence[Turn]
    ) -> Turn | Mapping[str, Any] | str:
        """Return a Turn, a mapping of its fields, or the turn's plain text."""
        ...


def resolve_capability(capability: Any, method: str) -> Callable[..., Any]:
    """
    Return the callable behind a capability.

    Accepts either an object exposing ``method`` (a ViewpointGenerator or
    TurnGenerator, or anything duck-typed like one) or a plain function.
    """
    bound = getattr(capability, method, None)
    if callable(bound):
        return bound
    if callable(capability):
        return capability
    raise TypeError(
        f"{type(capability).__name__} is neither callable nor provides .{method}()"
    )
