"""Strategy construction by name, and the one-call AI policy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sisters_engine.intent_generator import generate_legal_intents

if TYPE_CHECKING:
    from sisters_engine.intents import Intent
    from sisters_engine.state import GameState
    from strategies.base import Strategy

AI_NAMES = (
    "Bot Alice",
    "Bot Bob",
    "Bot Charlie",
    "Bot Diana",
    "Bot Eve",
    "Bot Frank",
    "Bot Grace",
)


class StrategyFactory:
    """Factory for creating strategy instances."""

    AVAILABLE_STRATEGIES = {
        "random": "Random player (baseline)",
        "easy": "Easy AI: plays a random playable card",
        "medium": "Medium AI: sheds low cards, burns big pyres",
        "hard": "Hard AI: plays its largest sets, saves wilds",
        "heuristic": "Rule-based heuristic player (medium)",
    }

    def create(self, name: str, params: dict[str, Any] | None = None) -> Strategy:
        """Create a strategy instance."""
        params = params or {}
        name_lower = name.lower()

        match name_lower:
            case "random" | "easy":
                from strategies.random_strategy import RandomStrategy
                return RandomStrategy(seed=params.get("seed"))

            case "medium" | "hard":
                from strategies.heuristic import HeuristicStrategy
                return HeuristicStrategy(difficulty=name_lower, seed=params.get("seed"))

            case "heuristic":
                from strategies.heuristic import HeuristicStrategy
                return HeuristicStrategy(
                    difficulty=params.get("difficulty", "medium"),
                    seed=params.get("seed"),
                )

            case _:
                raise ValueError(f"Unknown strategy: {name}")

    def list_strategies(self) -> dict[str, str]:
        """List available strategies with descriptions."""
        return self.AVAILABLE_STRATEGIES.copy()


def choose_intent(
    state: GameState, player_id: str, difficulty: str = "medium", seed: int | None = None
) -> Intent | None:
    """Pick an intent for a player at the given difficulty.

    Returns None when the player has nothing legal to do.
    """
    legal_intents = generate_legal_intents(state, player_id)
    if not legal_intents:
        return None
    strategy = StrategyFactory().create(difficulty, {"seed": seed})
    return strategy.select_intent(state, player_id, legal_intents)


def ai_player_name(index: int) -> str:
    """Display name for the index-th AI seat."""
    return AI_NAMES[index % len(AI_NAMES)]
