from agents.base import (
    AnalystProfile,
    Direction,
    MatchContext,
    Methodology,
    PriceTarget,
    Side,
    Stance,
    Turn,
    TurnGenerator,
    Viewpoint,
    ViewpointGenerator,
)
from agents.profiles import ANALYST_PROFILES, default_profiles, get_profile
from agents.replay import ReplayViewpointGenerator, ThesisReplayDebater

__all__ = [
    "AnalystProfile",
    "Direction",
    "MatchContext",
    "Methodology",
    "PriceTarget",
    "Side",
    "Stance",
    "Turn",
    "TurnGenerator",
    "Viewpoint",
    "ViewpointGenerator",
    "ANALYST_PROFILES",
    "default_profiles",
    "get_profile",
    "ReplayViewpointGenerator",
    "ThesisReplayDebater",
]
