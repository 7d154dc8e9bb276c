"""Read-only queries over game state."""

from __future__ import annotations

from sisters_engine.cards import Card
from sisters_engine.comparison import is_discard_rank, is_valid_play
from sisters_engine.state import GameState, PlayerState


def get_current_player(state: GameState) -> PlayerState | None:
    return state.current_player_state


def get_player_by_id(state: GameState, player_id: str) -> PlayerState | None:
    return state.get_player(player_id)


def get_top_pyre_card(state: GameState) -> Card | None:
    """The last card played onto the pyre, if any."""
    if not state.pyre:
        return None
    return state.pyre[-1]


def can_player_play(state: GameState, player_id: str) -> bool:
    """Whether the player has any card they could put on the pyre now.

    The hand is checked first, then face-up cards. Once only face-down cards
    remain a blind flip can always be attempted.
    """
    player = state.get_player(player_id)
    if player is None:
        return False

    if player.hand:
        return any(is_valid_play((c,), state.pyre) for c in player.hand)

    if player.face_up_cards:
        return any(is_valid_play((c,), state.pyre) for c in player.face_up_cards)

    return bool(player.face_down_cards)


def get_playable_cards(state: GameState, player_id: str) -> list[Card]:
    """Cards in the player's hand that could be played on the pyre."""
    player = state.get_player(player_id)
    if player is None:
        return []
    return [c for c in player.hand if is_valid_play((c,), state.pyre)]


def is_player_turn(state: GameState, player_id: str) -> bool:
    current = state.current_player_state
    return current is not None and current.id == player_id


def has_threes_in_hand(state: GameState, player_id: str) -> bool:
    player = state.get_player(player_id)
    if player is None:
        return False
    return any(is_discard_rank(c) for c in player.hand)


def get_winner(state: GameState) -> PlayerState | None:
    if state.winner is None:
        return None
    return state.get_player(state.winner)


def get_total_cards_for_player(player: PlayerState) -> int:
    return player.total_cards


def is_playing_face_up(player: PlayerState) -> bool:
    """Hand exhausted, face-up cards still on the table."""
    return not player.hand and bool(player.face_up_cards)


def is_playing_face_down(player: PlayerState) -> bool:
    """Hand and face-up exhausted, only blind cards left."""
    return not player.hand and not player.face_up_cards and bool(player.face_down_cards)
