"""3 Sisters card game engine."""

from sisters_engine.cards import Card, Rank, Suit, create_deck, shuffle_deck
from sisters_engine.state import (
    ActionType,
    Direction,
    GamePhase,
    GameState,
    PlayerState,
    TurnAction,
    create_initial_state,
)
from sisters_engine.intents import (
    DiscardThrees,
    FinishDiscardingThrees,
    FlipFaceDown,
    Intent,
    PickupPyre,
    PlayCards,
    PlayFaceUpCards,
    ResetGame,
    StartGame,
)
from sisters_engine.reducer import IllegalIntentError, apply_intent, execute_intent, run_discard_phase
from sisters_engine.views import ClientState, to_client_view

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "create_deck",
    "shuffle_deck",
    "ActionType",
    "Direction",
    "GamePhase",
    "GameState",
    "PlayerState",
    "TurnAction",
    "create_initial_state",
    "Intent",
    "StartGame",
    "DiscardThrees",
    "FinishDiscardingThrees",
    "PlayCards",
    "PlayFaceUpCards",
    "FlipFaceDown",
    "PickupPyre",
    "ResetGame",
    "IllegalIntentError",
    "apply_intent",
    "execute_intent",
    "run_discard_phase",
    "ClientState",
    "to_client_view",
]
