from orchestrator.arena import ArenaResult, DebateArena
from orchestrator.debate import DebateEngine
from orchestrator.errors import (
    ArenaError,
    EntrantGenerationFailed,
    InsufficientEntrants,
    MalformedResponse,
    TournamentAborted,
    TurnGenerationFailed,
)
from orchestrator.generation import GenerationCoordinator, GenerationResult
from orchestrator.graph import build_graph, run_graph
from orchestrator.models import (
    FinalRecommendation,
    Match,
    MatchRound,
    Pairing,
    TournamentResult,
)
from orchestrator.scheduler import TournamentScheduler
from orchestrator.synthesis import synthesize_recommendation

__all__ = [
    "DebateArena",
    "ArenaResult",
    "GenerationCoordinator",
    "GenerationResult",
    "DebateEngine",
    "TournamentScheduler",
    "synthesize_recommendation",
    "build_graph",
    "run_graph",
    "Pairing",
    "Match",
    "MatchRound",
    "TournamentResult",
    "FinalRecommendation",
    "ArenaError",
    "EntrantGenerationFailed",
    "MalformedResponse",
    "InsufficientEntrants",
    "TurnGenerationFailed",
    "TournamentAborted",
]
