"""Simulation running."""

from simulation.runner import (
    CardConservationError,
    GameLog,
    GameResult,
    GameRunner,
    IntentRecord,
    run_batch,
    save_game_log,
)

__all__ = [
    "CardConservationError",
    "GameLog",
    "GameResult",
    "GameRunner",
    "IntentRecord",
    "run_batch",
    "save_game_log",
]
