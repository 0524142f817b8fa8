"""
Usurp CLI - Command-line interface for the engine.

Usage:
    usurp simulate [--games N] [--players P] [--seed S]   Bot-only games
    usurp serve [--host H] [--port P]                     Run the HTTP API
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
import argparse
import logging
import random
import sys
import time

from .config import Settings, configure_logging


logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Outcome of one bot-only game."""
    game_id: str
    winner_id: str | None
    winner_name: str | None
    turns: int
    placements: dict[str, int]
    automated_moves: int


def simulate_game(
    num_players: int = 4,
    seed: int | None = None,
    policy: str = "heuristic",
    personalities: list[str] | None = None,
    decision_timeout: float = 5.0,
) -> SimulationResult:
    """
    Play one game between automated seats only.

    Args:
        num_players: Seats at the table (2-6)
        seed: Seed for the deal, the shuffles and every provider
        policy: heuristic, random or passive
        personalities: Personality names for heuristic seats, round-robin
    """
    from .bots import HeuristicPolicy, RandomPolicy, PassivePolicy, PERSONALITIES, get_personality
    from .engine_core.state import new_game
    from .session import Session, GameLoop

    rng = random.Random(seed)
    names = personalities or list(PERSONALITIES)
    seats = []
    providers = {}
    for i in range(num_players):
        seat_id = f"bot_{i + 1}"
        if policy == "random":
            provider = RandomPolicy(seed=rng.randrange(2**32))
            label = "Random"
        elif policy == "passive":
            provider = PassivePolicy()
            label = "Passive"
        else:
            personality = get_personality(names[i % len(names)])
            provider = HeuristicPolicy(personality=personality, seed=rng.randrange(2**32))
            label = personality.name
        seats.append((seat_id, f"{label} {i + 1}", True))
        providers[seat_id] = provider

    state = new_game(seats, rng=rng)
    session = Session(
        session_id=state.game_id,
        game_state=state,
        created_at=time.time(),
        providers=providers,
        human_seat_id=None,
        rng=rng,
    )
    result = GameLoop(session, decision_timeout=decision_timeout).run_automated()

    final = session.game_state
    winner = final.get_player(final.winner)
    return SimulationResult(
        game_id=final.game_id,
        winner_id=final.winner,
        winner_name=winner.name if winner else None,
        turns=final.turn,
        placements={p.name: p.placement for p in final.players if p.placement is not None},
        automated_moves=len(result.automated_moves),
    )


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Usurp - Bluffing card game engine",
        prog="usurp",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: USURP_LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Play bot-only games")
    sim_parser.add_argument("--games", "-n", type=int, default=1, help="Number of games")
    sim_parser.add_argument("--players", "-p", type=int, default=4, help="Seats per game (2-6)")
    sim_parser.add_argument("--seed", type=int, default=None, help="Base random seed")
    sim_parser.add_argument(
        "--policy", choices=["heuristic", "random", "passive"], default="heuristic",
        help="Decision provider for every seat",
    )
    sim_parser.add_argument(
        "--personalities", default=None,
        help="Comma-separated personality names for heuristic seats",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    args = parser.parse_args(argv)
    settings = Settings.from_env()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_simulate(args):
    """Play bot-only games and print the results."""
    if not 2 <= args.players <= 6:
        print(f"Error: --players must be between 2 and 6, got {args.players}")
        sys.exit(1)
    personalities = args.personalities.split(",") if args.personalities else None

    wins: Counter[str] = Counter()
    total_turns = 0
    for i in range(args.games):
        seed = args.seed + i if args.seed is not None else None
        try:
            result = simulate_game(
                num_players=args.players,
                seed=seed,
                policy=args.policy,
                personalities=personalities,
            )
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)

        total_turns += result.turns
        if result.winner_name:
            wins[result.winner_name] += 1
        ranking = ", ".join(
            f"{place}. {name}" for name, place in sorted(result.placements.items(), key=lambda kv: kv[1])
        )
        print(f"Game {i + 1}: {result.winner_name or 'no winner'} in {result.turns} turns ({ranking})")

    if args.games > 1:
        print(f"\nAverage length: {total_turns / args.games:.1f} turns")
        print("Wins:")
        for name, count in wins.most_common():
            print(f"  {name}: {count}")


def cmd_serve(args, settings: Settings):
    """Run the API under uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install usurp[serve]")
        sys.exit(1)

    from .api import create_app

    app = create_app(settings=settings)
    logger.info("Serving on %s:%d (%s)", args.host, args.port, settings.env)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
