#!/usr/bin/env python3
"""
Offline debate arena run — replays recorded viewpoints through the full
tournament and prints the bracket and the final recommendation.

Usage:
    python scripts/run_arena.py
    python scripts/run_arena.py --viewpoints scripts/sample_viewpoints.json
    python scripts/run_arena.py --graph --turns-per-side 3
    python scripts/run_arena.py --json > result.json
"""

import argparse
import json
import logging
import os
import sys

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.replay import ReplayViewpointGenerator, ThesisReplayDebater  # noqa: E402
from config.settings import settings  # noqa: E402
from orchestrator.arena import DebateArena  # noqa: E402
from orchestrator.events import MatchCompleted  # noqa: E402
from orchestrator.graph import run_graph  # noqa: E402

logger = logging.getLogger(__name__)

DEFAULT_VIEWPOINTS = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sample_viewpoints.json")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the debate arena offline on recorded viewpoints."
    )
    parser.add_argument(
        "--viewpoints", default=DEFAULT_VIEWPOINTS,
        help="JSON file with recorded viewpoints (and optional market_data).",
    )
    parser.add_argument(
        "--turns-per-side", type=int, default=None,
        help=f"Exchanges per regular match (default: {settings.turns_per_side}).",
    )
    parser.add_argument(
        "--match-concurrency", type=int, default=None,
        help=f"Matches run at once within a round (default: {settings.match_concurrency}).",
    )
    parser.add_argument(
        "--graph", action="store_true",
        help="Run through the LangGraph pipeline instead of DebateArena.",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print the full result as JSON instead of a summary.",
    )
    return parser.parse_args()


def _print_match(event) -> None:
    if not isinstance(event, MatchCompleted):
        return
    m = event.match
    winner = m.winning_viewpoint.display_name
    loser = m.losing_viewpoint.display_name
    tie = f" (tie-break: {m.tie_break})" if m.tie_break else ""
    print(
        f"  {m.match_id:<16} {winner:<18} def. {loser:<18} "
        f"{m.scores.total(m.winner):6.2f} - {m.scores.total(m.winner.other()):6.2f}{tie}"
    )


def main():
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with open(args.viewpoints, encoding="utf-8") as f:
        data = json.load(f)
    market_data = data.get("market_data", {}) if isinstance(data, dict) else {}
    current_price = market_data.get("price")

    generator = ReplayViewpointGenerator.from_file(args.viewpoints)
    debater = ThesisReplayDebater()
    on_event = None if args.json else _print_match

    if not args.json:
        print("=" * 70)
        print(f"Debate arena: {len(generator.analyst_ids)} recorded viewpoints")
        print("=" * 70)

    if args.graph:
        if args.turns_per_side is not None or args.match_concurrency is not None:
            logger.warning("--turns-per-side/--match-concurrency are read from settings in --graph mode")
        result = run_graph(
            market_data, generator, debater, on_event=on_event, current_price=current_price
        )
    else:
        arena = DebateArena(
            generator,
            debater,
            turns_per_side=args.turns_per_side,
            match_concurrency=args.match_concurrency,
        )
        result = arena.run(market_data, on_event=on_event, current_price=current_price)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    rec = result.recommendation
    if rec is None:
        print("\nNo recommendation (run cancelled).")
        return

    print("\n" + "=" * 70)
    print(f"Champion:     {result.champion.display_name}")
    print(f"Stance:       {rec.stance.label}")
    print(f"Confidence:   {rec.confidence:.0f}%   Consensus: {rec.consensus_strength:.0f}%")
    print(
        f"Price target: ${rec.price_target.bear:.2f} / ${rec.price_target.base:.2f} / "
        f"${rec.price_target.bull:.2f} ({rec.price_target.horizon})"
    )
    print(f"Risk level:   {rec.risk_level.value}   Allocation: {rec.suggested_allocation:.1f}%")
    if rec.dissenting_views:
        print("Dissent:")
        for d in rec.dissenting_views:
            print(f"  {d.analyst_name} ({d.stance.label}): {d.reasoning}")
    print(f"\n{rec.executive_summary}")
    print(f"\nCompleted in {result.total_duration_ms / 1000:.2f}s")


if __name__ == "__main__":
    main()
