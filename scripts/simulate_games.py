#!/usr/bin/env python3
"""Play Hanabi games with a random legal-action policy and check replays."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from src.hanabi.game import deal_initial_state, get_status, legal_actions, step
from src.hanabi.models import Action, GameState
from src.hanabi.replay import replay

logger = logging.getLogger(__name__)

DEFAULT_NAMES = ["Alice", "Bob", "Cathy", "Donald", "Emily"]


class Colors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def play_random_game(
    player_names: list[str],
    seed: int,
    max_actions: int = 1000,
) -> tuple[GameState, list[Action], GameState]:
    """
    Play one game, choosing uniformly among legal actions.

    Returns:
        (initial_state, action_log, final_state)
    """
    rng = random.Random(seed)
    initial = deal_initial_state(player_names, seed=seed)
    state = initial
    log: list[Action] = []

    while get_status(state).status == "playing" and len(log) < max_actions:
        action = rng.choice(legal_actions(state))
        state = step(state, action)
        log.append(action)
        logger.debug("%s -> hints=%d strikes=%d deck=%d", action, state.n_hints, state.n_strikes, len(state.deck))

    return initial, log, state


def main() -> int:
    parser = argparse.ArgumentParser(description="Simulate random Hanabi games")
    parser.add_argument("--players", type=int, default=3, help="Number of players (2-5)")
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument("--seed", type=int, default=0, help="Seed of the first game")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    names = DEFAULT_NAMES[: args.players]
    mismatches = 0
    results: dict[str, int] = {"over": 0, "lost": 0, "playing": 0}
    scores: list[int] = []

    for seed in range(args.seed, args.seed + args.games):
        initial, log, final = play_random_game(names, seed)
        status = get_status(final)
        results[status.status] += 1

        # Replaying the log must land on exactly the live state
        replayed = replay(initial, log)[-1].state
        if replayed != final:
            mismatches += 1
            logger.error("Replay mismatch for seed %d", seed)

        if status.status == "over":
            scores.append(status.score or 0)
            print(f"{Colors.GREEN}seed {seed}: over, score {status.score} after {len(log)} actions{Colors.RESET}")
        elif status.status == "lost":
            print(f"{Colors.RED}seed {seed}: lost after {len(log)} actions{Colors.RESET}")
        else:
            print(f"{Colors.YELLOW}seed {seed}: unfinished after {len(log)} actions{Colors.RESET}")

    print(f"\n{Colors.BOLD}Summary{Colors.RESET}: {results}")
    if scores:
        print(f"  mean score (finished games): {sum(scores) / len(scores):.2f}")
    print(f"  replay mismatches: {mismatches}")
    return 1 if mismatches else 0


if __name__ == "__main__":
    sys.exit(main())
