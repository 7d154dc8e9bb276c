"""Command-line interface for 3 Sisters."""

from __future__ import annotations

import argparse
import logging
import time
from typing import TYPE_CHECKING

from sisters_engine.intent_generator import generate_legal_intents
from sisters_engine.intents import StartGame
from sisters_engine.reducer import execute_intent, run_discard_phase
from sisters_engine.state import INITIAL_STATE

if TYPE_CHECKING:
    from sisters_engine.intents import Intent
    from sisters_engine.state import GameState

HUMAN_ID = "player-0"


def format_state(state: GameState, viewer_id: str | None = None) -> str:
    """Format game state for display.

    Hands and face-down cards are shown only for ``viewer_id``; pass None to
    show every pile.
    """
    lines = []

    direction = "clockwise" if state.direction > 0 else "counter-clockwise"
    lines.append("=" * 60)
    lines.append(f"Phase: {state.phase.value} | Direction: {direction}")
    lines.append("=" * 60)

    for i, player in enumerate(state.players):
        prefix = "→ " if i == state.current_player_index else "  "
        lines.append(f"\n{prefix}{player.name} ({player.total_cards} cards)")
        lines.append("-" * 40)

        visible = viewer_id is None or player.id == viewer_id
        if visible:
            hand_str = ", ".join(str(c) for c in player.hand) or "(empty)"
            lines.append(f"  Hand: {hand_str}")
        else:
            lines.append(f"  Hand: [{len(player.hand)} cards]")

        face_up_str = ", ".join(str(c) for c in player.face_up_cards) or "(none)"
        lines.append(f"  Face-up: {face_up_str}")

        # Face-down cards are blind even to their owner
        if viewer_id is None:
            face_down_str = ", ".join(str(c) for c in player.face_down_cards) or "(none)"
            lines.append(f"  Face-down: {face_down_str}")
        else:
            lines.append(f"  Face-down: [{len(player.face_down_cards)} cards]")

    pyre_str = ", ".join(str(c) for c in state.pyre) or "(empty)"
    lines.append(f"\nPyre: {pyre_str}")
    lines.append(f"Discard: {len(state.discard_pile)} cards")

    if state.is_game_over:
        winner = state.get_player(state.winner)
        lines.append("\n" + "=" * 60)
        lines.append(f"GAME OVER - {winner.name if winner else state.winner} wins!")
        lines.append("=" * 60)

    return "\n".join(lines)


def format_intents(intents: list[Intent]) -> str:
    """Format available intents for display."""
    lines = ["Available moves:"]
    for i, intent in enumerate(intents):
        lines.append(f"  {i + 1}. {intent}")
    return "\n".join(lines)


def play_interactive(
    seed: int | None = None, opponents: int = 2, difficulty: str = "medium"
) -> None:
    """Play an interactive game against AI opponents."""
    from strategies.factory import StrategyFactory, ai_player_name

    factory = StrategyFactory()
    ais = [
        factory.create(difficulty, {"seed": None if seed is None else seed + i})
        for i in range(opponents)
    ]
    names = ("You",) + tuple(ai_player_name(i) for i in range(opponents))

    state = run_discard_phase(execute_intent(INITIAL_STATE, StartGame(names, seed=seed)))

    print("\nWelcome to 3 Sisters!")
    print("You are 'You'. Type the number of a move to play.")
    print("Type 'q' to quit.\n")

    while not state.is_game_over:
        print(format_state(state, viewer_id=HUMAN_ID))

        acting = state.current_player_state
        legal_intents = generate_legal_intents(state, acting.id)

        if acting.id == HUMAN_ID:
            print(f"\n{format_intents(legal_intents)}")

            while True:
                try:
                    choice = input("\nYour move: ").strip()
                    if choice.lower() == "q":
                        print("Goodbye!")
                        return

                    intent_idx = int(choice) - 1
                    if 0 <= intent_idx < len(legal_intents):
                        intent = legal_intents[intent_idx]
                        break
                    else:
                        print(f"Please enter a number 1-{len(legal_intents)}")
                except ValueError:
                    print("Please enter a valid number or 'q' to quit")
        else:
            ai = ais[state.current_player_index - 1]
            intent = ai.select_intent(state, acting.id, legal_intents)
            print(f"\n{acting.name} plays: {intent}")

        state = execute_intent(state, intent)
        print()

    print(format_state(state))


def watch_game(players: int = 3, seed: int | None = None, delay: float = 0.5) -> None:
    """Watch AIs of every difficulty play each other."""
    from strategies.factory import StrategyFactory, ai_player_name

    factory = StrategyFactory()
    difficulties = ("easy", "medium", "hard")
    strategies = [
        factory.create(difficulties[i % len(difficulties)], {"seed": seed})
        for i in range(players)
    ]
    names = tuple(ai_player_name(i) for i in range(players))

    state = run_discard_phase(execute_intent(INITIAL_STATE, StartGame(names, seed=seed)))

    print("\nWatching: " + " vs ".join(f"{n} ({s.name})" for n, s in zip(names, strategies)))
    print("Press Ctrl+C to stop.\n")

    try:
        while not state.is_game_over:
            print(format_state(state))

            acting = state.current_player_state
            legal_intents = generate_legal_intents(state, acting.id)
            strategy = strategies[state.current_player_index]
            intent = strategy.select_intent(state, acting.id, legal_intents)

            print(f"\n{acting.name} ({strategy.name}) plays: {intent}")
            state = execute_intent(state, intent)

            time.sleep(delay)
            print("\n" + "-" * 60 + "\n")

    except KeyboardInterrupt:
        print("\nStopped.")

    print(format_state(state))


def run_tournament(num_games: int = 100, seed: int = 42) -> None:
    """Run easy, medium and hard AIs against each other."""
    from simulation.runner import run_batch
    from strategies.heuristic import HeuristicStrategy
    from strategies.random_strategy import RandomStrategy

    strategies = [
        RandomStrategy(seed=seed),
        HeuristicStrategy("medium", seed=seed + 1000),
        HeuristicStrategy("hard", seed=seed + 2000),
    ]
    labels = ", ".join(s.name for s in strategies)
    print(f"\nRunning {num_games} games: {labels}")

    results = run_batch(strategies, num_games, start_seed=seed)
    if not results:
        return

    draws = sum(1 for r in results if r.winner is None)
    avg_intents = sum(r.intent_count for r in results) / len(results)
    avg_duration = sum(r.duration_ms for r in results) / len(results)

    print("\nResults:")
    for seat, strategy in enumerate(strategies):
        wins = sum(1 for r in results if r.winner_seat == seat)
        print(f"  {strategy.name} wins: {wins} ({100*wins/num_games:.1f}%)")
    print(f"  Draws: {draws} ({100*draws/num_games:.1f}%)")
    print(f"  Average intents: {avg_intents:.1f}")
    print(f"  Average duration: {avg_duration:.2f}ms")


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="3 Sisters card game")
    parser.add_argument(
        "--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play against AI")
    play_parser.add_argument("--seed", type=int, help="Random seed")
    play_parser.add_argument(
        "--opponents", type=int, default=2, choices=range(1, 8), help="Number of AI opponents"
    )
    play_parser.add_argument(
        "--difficulty", default="medium", choices=["easy", "medium", "hard"], help="AI difficulty"
    )

    # Watch command
    watch_parser = subparsers.add_parser("watch", help="Watch AI vs AI")
    watch_parser.add_argument(
        "--players", type=int, default=3, choices=range(2, 9), help="Number of AI players"
    )
    watch_parser.add_argument("--seed", type=int, help="Random seed")
    watch_parser.add_argument(
        "--delay", type=float, default=0.5, help="Delay between moves (seconds)"
    )

    # Tournament command
    tournament_parser = subparsers.add_parser("tournament", help="Run tournament")
    tournament_parser.add_argument(
        "--games", type=int, default=100, help="Number of games"
    )
    tournament_parser.add_argument("--seed", type=int, default=42, help="Random seed")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())

    if args.command == "play":
        play_interactive(seed=args.seed, opponents=args.opponents, difficulty=args.difficulty)
    elif args.command == "watch":
        watch_game(players=args.players, seed=args.seed, delay=args.delay)
    elif args.command == "tournament":
        run_tournament(num_games=args.games, seed=args.seed)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
