"""Game runner for 3 Sisters simulations."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from sisters_engine.intent_generator import generate_legal_intents
from sisters_engine.intents import StartGame
from sisters_engine.reducer import execute_intent, run_discard_phase
from sisters_engine.state import INITIAL_STATE

if TYPE_CHECKING:
    from sisters_engine.state import GameState
    from strategies.base import Strategy

logger = logging.getLogger(__name__)


class CardConservationError(RuntimeError):
    """Raised when cards appear or vanish between two states."""

    pass


@dataclass
class GameResult:
    """Result of a completed game."""

    game_id: str
    winner: str | None  # Player id, or None for a game cut off at the intent cap
    winner_seat: int | None
    intent_count: int
    player_strategies: tuple[str, ...]
    seed: int | None
    duration_ms: float
    final_card_counts: tuple[int, ...]


@dataclass
class IntentRecord:
    """Record of a single applied intent."""

    index: int
    player_id: str
    intent: str
    pyre_size: int
    card_counts: tuple[int, ...]


@dataclass
class GameLog:
    """Complete log of a game."""

    game_id: str
    timestamp: str
    seed: int | None
    player_strategies: tuple[str, ...]
    initial_state: dict
    intents: list[IntentRecord] = field(default_factory=list)
    result: GameResult | None = None


class GameRunner:
    """Runs 3 Sisters games between strategies, one per seat."""

    def __init__(
        self,
        strategies: Sequence[Strategy],
        max_intents: int = 2000,
        log_intents: bool = False,
    ):
        """Initialize the game runner.

        Args:
            strategies: One strategy per seat, in seat order.
            max_intents: Intents to allow before abandoning the game as a draw.
            log_intents: Whether to record every intent.
        """
        self.strategies = tuple(strategies)
        self.max_intents = max_intents
        self.log_intents = log_intents

    def run_game(self, seed: int | None = None) -> tuple[GameResult, GameLog | None]:
        """Run a single game.

        Args:
            seed: Random seed for the deal.

        Returns:
            Tuple of (result, log). Log is None if log_intents is False.

        Raises:
            CardConservationError: If any step creates or loses a card.
        """
        start_time = time.perf_counter()
        game_id = str(uuid.uuid4())
        names = tuple(s.name for s in self.strategies)

        state = execute_intent(INITIAL_STATE, StartGame(names, seed=seed))
        dealt = Counter(c.id for c in state.all_cards())
        state = run_discard_phase(state)
        self._check_conservation(state, dealt)

        seat_ids = [p.id for p in state.players]
        for player_id, strategy in zip(seat_ids, self.strategies):
            strategy.on_game_start(state, player_id)

        game_log = None
        if self.log_intents:
            game_log = GameLog(
                game_id=game_id,
                timestamp=datetime.now().isoformat(),
                seed=seed,
                player_strategies=names,
                initial_state=self._state_to_dict(state),
            )

        intent_count = 0

        while not state.is_game_over and intent_count < self.max_intents:
            seat = state.current_player_index
            player_id = seat_ids[seat]
            legal_intents = generate_legal_intents(state, player_id)

            if not legal_intents:
                # Shouldn't happen in a valid game
                logger.warning(f"No legal intents for {player_id} in game {game_id}")
                break

            strategy = self.strategies[seat]
            intent = strategy.select_intent(state, player_id, legal_intents)

            new_state = execute_intent(state, intent)
            self._check_conservation(new_state, dealt)
            intent_count += 1

            if game_log:
                game_log.intents.append(
                    IntentRecord(
                        index=intent_count,
                        player_id=player_id,
                        intent=str(intent),
                        pyre_size=len(new_state.pyre),
                        card_counts=tuple(p.total_cards for p in new_state.players),
                    )
                )

            for s in self.strategies:
                s.on_intent_applied(new_state, intent, player_id)

            state = new_state

        if not state.is_game_over:
            logger.info(f"Game {game_id} hit the {self.max_intents} intent cap")

        duration_ms = (time.perf_counter() - start_time) * 1000

        result = GameResult(
            game_id=game_id,
            winner=state.winner,
            winner_seat=state.find_player_index(state.winner) if state.winner else None,
            intent_count=intent_count,
            player_strategies=names,
            seed=seed,
            duration_ms=duration_ms,
            final_card_counts=tuple(p.total_cards for p in state.players),
        )

        if game_log:
            game_log.result = result

        for strategy in self.strategies:
            strategy.on_game_end(state, state.winner)

        return result, game_log

    def _check_conservation(self, state: GameState, dealt: Counter) -> None:
        if Counter(c.id for c in state.all_cards()) != dealt:
            raise CardConservationError("Card multiset changed during play")

    def _state_to_dict(self, state: GameState) -> dict:
        """Convert game state to a dictionary for logging."""
        return {
            "phase": state.phase.value,
            "current_player_index": state.current_player_index,
            "direction": int(state.direction),
            "pyre": [c.id for c in state.pyre],
            "discard_size": len(state.discard_pile),
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "hand": [c.id for c in p.hand],
                    "face_up": [c.id for c in p.face_up_cards],
                    "face_down": [c.id for c in p.face_down_cards],
                }
                for p in state.players
            ],
        }


def save_game_log(log: GameLog, base_dir: str = "logs/games") -> Path:
    """Save a game log to disk.

    Args:
        log: Game log to save.
        base_dir: Base directory for logs.

    Returns:
        Path to the saved file.
    """
    date_str = log.timestamp[:10]  # YYYY-MM-DD
    dir_path = Path(base_dir) / date_str
    dir_path.mkdir(parents=True, exist_ok=True)

    file_path = dir_path / f"game_{log.game_id}.json"

    data = {
        "game_id": log.game_id,
        "timestamp": log.timestamp,
        "seed": log.seed,
        "player_strategies": log.player_strategies,
        "initial_state": log.initial_state,
        "intents": [
            {
                "index": r.index,
                "player_id": r.player_id,
                "intent": r.intent,
                "pyre_size": r.pyre_size,
                "card_counts": r.card_counts,
            }
            for r in log.intents
        ],
        "result": {
            "winner": log.result.winner,
            "winner_seat": log.result.winner_seat,
            "intent_count": log.result.intent_count,
            "duration_ms": log.result.duration_ms,
            "final_card_counts": log.result.final_card_counts,
        }
        if log.result
        else None,
    }

    with open(file_path, "w") as f:
        json.dump(data, f, indent=2)

    return file_path


def run_batch(
    strategies: Sequence[Strategy],
    num_games: int,
    start_seed: int = 0,
    max_intents: int = 2000,
) -> list[GameResult]:
    """Run multiple games.

    Args:
        strategies: One strategy per seat.
        num_games: Number of games to run.
        start_seed: Starting seed (incremented for each game).
        max_intents: Per-game intent cap.

    Returns:
        List of game results.
    """
    runner = GameRunner(strategies, max_intents=max_intents)
    results = []

    for i in range(num_games):
        result, _ = runner.run_game(seed=start_seed + i)
        results.append(result)

    return results
