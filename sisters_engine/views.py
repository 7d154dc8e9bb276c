"""Per-viewer redacted projections of game state.

``GameState`` holds full information. A ``ClientState`` is what one player is
allowed to see: everyone's face-up cards, card counts for everything hidden,
and the viewer's own hand and face-down cards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sisters_engine.cards import Card
from sisters_engine.state import Direction, GamePhase, GameState, PlayerState, TurnAction


@dataclass(frozen=True, slots=True)
class ClientPlayer:
    """What any viewer may know about a seat."""

    id: str
    name: str
    hand_count: int
    face_up_cards: tuple[Card, ...]
    face_down_count: int
    is_connected: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "handCount": self.hand_count,
            "faceUpCards": [card_to_dict(c) for c in self.face_up_cards],
            "faceDownCount": self.face_down_count,
            "isConnected": self.is_connected,
        }


@dataclass(frozen=True, slots=True)
class ClientState:
    """Game state as seen by one player."""

    phase: GamePhase
    players: tuple[ClientPlayer, ...]
    current_player_index: int
    direction: Direction
    pyre: tuple[Card, ...]
    discard_count: int
    turn_history: tuple[TurnAction, ...]
    winner: str | None
    your_player_id: str
    your_hand: tuple[Card, ...]
    your_face_up_cards: tuple[Card, ...]
    your_face_down_cards: tuple[Card, ...]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict with the camelCase keys clients expect."""
        return {
            "phase": self.phase.value,
            "players": [p.to_dict() for p in self.players],
            "currentPlayerIndex": self.current_player_index,
            "direction": int(self.direction),
            "pyre": [card_to_dict(c) for c in self.pyre],
            "discardCount": self.discard_count,
            "turnHistory": [turn_action_to_dict(a) for a in self.turn_history],
            "winner": self.winner,
            "yourPlayerId": self.your_player_id,
            "yourHand": [card_to_dict(c) for c in self.your_hand],
            "yourFaceUpCards": [card_to_dict(c) for c in self.your_face_up_cards],
            "yourFaceDownCards": [card_to_dict(c) for c in self.your_face_down_cards],
        }


def to_client_view(state: GameState, for_player_id: str) -> ClientState:
    """Project the state for one viewer.

    An id that matches no seat (a spectator) sees only public information.
    """
    viewer = state.get_player(for_player_id)
    return ClientState(
        phase=state.phase,
        players=tuple(to_client_player(p) for p in state.players),
        current_player_index=state.current_player_index,
        direction=state.direction,
        pyre=state.pyre,
        discard_count=len(state.discard_pile),
        turn_history=state.turn_history,
        winner=state.winner,
        your_player_id=for_player_id,
        your_hand=viewer.hand if viewer else (),
        your_face_up_cards=viewer.face_up_cards if viewer else (),
        your_face_down_cards=viewer.face_down_cards if viewer else (),
    )


def to_client_player(player: PlayerState) -> ClientPlayer:
    return ClientPlayer(
        id=player.id,
        name=player.name,
        hand_count=len(player.hand),
        face_up_cards=player.face_up_cards,
        face_down_count=len(player.face_down_cards),
        is_connected=player.is_connected,
    )


def card_to_dict(card: Card) -> dict[str, Any]:
    """Convert a Card to a dictionary."""
    return {
        "id": card.id,
        "suit": card.suit.key,
        "rank": card.rank.symbol,
        "value": card.rank.value,
        "display": str(card),
    }


def turn_action_to_dict(action: TurnAction) -> dict[str, Any]:
    return {
        "playerId": action.player_id,
        "type": action.type.value,
        "cards": [card_to_dict(c) for c in action.cards],
        "timestamp": action.timestamp,
    }
