"""
Default analyst roster — one profile per methodology.

Callers may supply their own profiles; these are what the arena uses when
none are given.
"""

from __future__ import annotations

from agents.base import AnalystProfile, Methodology

ANALYST_PROFILES: dict[Methodology, AnalystProfile] = {
    Methodology.VALUE: AnalystProfile(
        id="warren",
        name="Warren",
        title="Value Investor",
        avatar="🎩",
        methodology=Methodology.VALUE,
        description=(
            "Seeks undervalued companies with strong fundamentals, wide moats, "
            "and margin of safety. Focuses on intrinsic value vs market price."
        ),
    ),
    Methodology.GROWTH: AnalystProfile(
        id="cathie",
        name="Cathie",
        title="Growth Investor",
        avatar="🚀",
        methodology=Methodology.GROWTH,
        description=(
            "Hunts for disruptive innovation and exponential growth potential. "
            "Willing to pay a premium for future earnings power."
        ),
    ),
    Methodology.TECHNICAL: AnalystProfile(
        id="jim",
        name="Jim",
        title="Technical Analyst",
        avatar="📊",
        methodology=Methodology.TECHNICAL,
        description="Reads price action, volume, and chart patterns.",
    ),
    Methodology.MACRO: AnalystProfile(
        id="ray",
        name="Ray",
        title="Macro Strategist",
        avatar="🌍",
        methodology=Methodology.MACRO,
        description="Analyzes rates, cycles, and sector rotation.",
    ),
    Methodology.SENTIMENT: AnalystProfile(
        id="elon",
        name="Elon",
        title="Sentiment Analyst",
        avatar="📱",
        methodology=Methodology.SENTIMENT,
        description="Tracks market psychology, news flow, and social sentiment.",
    ),
    Methodology.RISK: AnalystProfile(
        id="karen",
        name="Karen",
        title="Risk Manager",
        avatar="🛡️",
        methodology=Methodology.RISK,
        description="Focuses on downside protection, volatility, and what could go wrong.",
    ),
    Methodology.QUANT: AnalystProfile(
        id="quant",
        name="Quant",
        title="Quantitative Analyst",
        avatar="🤖",
        methodology=Methodology.QUANT,
        description="Uses statistical models, factor analysis, and data-driven signals.",
    ),
    Methodology.CONTRARIAN: AnalystProfile(
        id="devil",
        name="Devil's Advocate",
        title="Contrarian Analyst",
        avatar="😈",
        methodology=Methodology.CONTRARIAN,
        description="Challenges consensus and looks for crowded trades to fade.",
    ),
}


def default_profiles() -> list[AnalystProfile]:
    """The eight default profiles, in methodology declaration order."""
    return [ANALYST_PROFILES[m] for m in Methodology]


def get_profile(analyst_id: str) -> AnalystProfile | None:
    for profile in ANALYST_PROFILES.values():
        if profile.id == analyst_id:
            return profile
    return None
