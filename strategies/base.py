"""Base strategy interface for 3 Sisters players."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sisters_engine.comparison import is_valid_play
from sisters_engine.intents import FlipFaceDown, PickupPyre, PlayCards, PlayFaceUpCards

if TYPE_CHECKING:
    from sisters_engine.cards import Card
    from sisters_engine.intents import Intent
    from sisters_engine.state import GameState


class Strategy(ABC):
    """Abstract base class for player strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this strategy."""
        ...

    @abstractmethod
    def select_intent(
        self, state: GameState, player_id: str, legal_intents: list[Intent]
    ) -> Intent:
        """Select an intent from the list of legal intents.

        Args:
            state: Current game state.
            player_id: Which player this strategy is acting for.
            legal_intents: All legal intents for that player right now.

        Returns:
            The selected intent.
        """
        ...

    def thinking_time(self) -> float:
        """Seconds a coordinator may wait before acting, to feel natural."""
        return 0.0

    def on_game_start(self, state: GameState, player_id: str) -> None:
        """Called when a game starts.

        Override to initialize per-game state.

        Args:
            state: Initial game state.
            player_id: Which player this strategy controls.
        """
        pass

    def on_game_end(self, state: GameState, winner: str | None) -> None:
        """Called when a game ends.

        Args:
            state: Final game state.
            winner: Winning player id, or None for an abandoned game.
        """
        pass

    def on_intent_applied(self, state: GameState, intent: Intent, player_id: str) -> None:
        """Called after any accepted intent (by any player).

        Args:
            state: State after the intent.
            intent: The intent that was applied.
            player_id: Which player submitted it.
        """
        pass


class CardPlayStrategy(Strategy):
    """Strategy that decides which cards to play rather than which intent.

    Subclasses implement :meth:`choose_cards`. Blind flips pick a random index
    and a pickup happens only when no card can be played.
    """

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)
        self._seed = seed

    @abstractmethod
    def choose_cards(self, playable: list[Card], pyre: Sequence[Card]) -> list[Card]:
        """Pick same-rank cards to play from the playable ones.

        Args:
            playable: Cards that can each legally go on the pyre, in pile order.
            pyre: Current pyre.

        Returns:
            Cards to play; empty to pick up instead.
        """
        ...

    def select_intent(
        self, state: GameState, player_id: str, legal_intents: list[Intent]
    ) -> Intent:
        if not legal_intents:
            raise ValueError("No legal intents available")

        flips = [i for i in legal_intents if isinstance(i, FlipFaceDown)]
        if flips:
            return self._rng.choice(flips)

        plays = [i for i in legal_intents if isinstance(i, (PlayCards, PlayFaceUpCards))]
        if plays:
            cards = self.choose_cards(playable_cards(state, player_id), state.pyre)
            chosen = find_play(plays, cards)
            if chosen is not None:
                return chosen

        for intent in legal_intents:
            if isinstance(intent, PickupPyre):
                return intent
        return legal_intents[0]

    def reset_seed(self, seed: int | None = None) -> None:
        """Reset the random number generator with a new seed."""
        self._seed = seed
        self._rng = random.Random(seed)


def playable_cards(state: GameState, player_id: str) -> list[Card]:
    """Cards the player could put on the pyre from the pile they play from now."""
    player = state.get_player(player_id)
    if player is None:
        return []
    source = player.hand or player.face_up_cards
    return [c for c in source if is_valid_play((c,), state.pyre)]


def find_play(plays: list[Intent], cards: Sequence[Card]) -> Intent | None:
    """Legal play naming exactly these cards, if one exists."""
    if not cards:
        return None
    wanted = {c.id for c in cards}
    for intent in plays:
        if set(intent.card_ids) == wanted:
            return intent
    return None
