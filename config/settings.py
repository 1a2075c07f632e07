"""
Application settings with Pydantic validation.
Supports .env file and environment variable overrides.

Every tunable of the debate arena lives here. Components accept ``None``
for their knobs and fall back to these values, so a deployment can reshape
the tournament (turn budget, pool sizes, allocation cap) from the
environment without touching call sites.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Generation phase ---
    generation_concurrency: int = Field(
        default=4, ge=1, le=8,
        description="Max viewpoint generations in flight at once",
    )
    cancel_poll_seconds: float = Field(
        default=0.05, gt=0.0, le=5.0,
        description="How often the generation pool re-checks the cancel token while waiting",
    )

    # --- Tournament phase ---
    turns_per_side: int = Field(
        default=2, ge=1, le=10,
        description="Exchanges per side in a regular match (2 => bull, bear, bull, bear)",
    )
    final_extra_exchanges: int = Field(
        default=1, ge=0, le=5,
        description="Additional exchanges per side granted to the final",
    )
    match_concurrency: int = Field(
        default=1, ge=1, le=4,
        description="Matches run concurrently within a round (1 = sequential)",
    )
    min_entrants: int = Field(
        default=2, ge=2, le=8,
        description="Fewest successful viewpoints a tournament will start with",
    )

    # --- Recommendation ---
    max_allocation_pct: float = Field(
        default=10.0, ge=0.0, le=100.0,
        description="Upper bound on suggested portfolio allocation, in percent",
    )
    price_target_horizon: str = Field(
        default="1Y",
        description="Horizon label attached to price targets that omit one",
    )

    # --- Application ---
    log_level: str = Field(default="INFO", description="Logging level")


# Singleton instance
settings = Settings()
