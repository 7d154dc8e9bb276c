"""Game strategies for 3 Sisters."""

from strategies.base import CardPlayStrategy, Strategy
from strategies.factory import StrategyFactory, ai_player_name, choose_intent
from strategies.heuristic import HeuristicStrategy
from strategies.random_strategy import RandomStrategy

__all__ = [
    "Strategy",
    "CardPlayStrategy",
    "RandomStrategy",
    "HeuristicStrategy",
    "StrategyFactory",
    "choose_intent",
    "ai_player_name",
]
