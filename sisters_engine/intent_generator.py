"""Legal intent generation for 3 Sisters."""

from __future__ import annotations

from collections.abc import Sequence

from sisters_engine.cards import Card, Rank
from sisters_engine.comparison import is_discard_rank, is_valid_play
from sisters_engine.intents import (
    DiscardThrees,
    FlipFaceDown,
    Intent,
    PickupPyre,
    PlayCards,
    PlayFaceUpCards,
)
from sisters_engine.state import GamePhase, GameState, PlayerState


def generate_legal_intents(state: GameState, player_id: str) -> list[Intent]:
    """Generate every intent the given player may legally submit now.

    Args:
        state: Current game state.
        player_id: Player to generate intents for.

    Returns:
        List of legal intents. Empty when the player cannot act, e.g. it is
        not their turn or the game is over.
    """
    if state.is_game_over:
        return []

    player = state.get_player(player_id)
    if player is None:
        return []

    match state.phase:
        case GamePhase.DISCARDING_THREES:
            return _generate_discard_intents(player)
        case GamePhase.PLAYING:
            if state.current_player_state.id != player.id:
                return []
            return _generate_playing_intents(state, player)

    return []


def group_by_rank(cards: Sequence[Card]) -> dict[Rank, list[Card]]:
    """Group cards by rank, lowest rank first, keeping pile order within a rank."""
    groups: dict[Rank, list[Card]] = {}
    for card in sorted(cards, key=lambda c: c.rank):
        groups.setdefault(card.rank, [])
    for card in cards:
        groups[card.rank].append(card)
    return groups


def _generate_discard_intents(player: PlayerState) -> list[Intent]:
    if any(is_discard_rank(c) for c in player.hand):
        return [DiscardThrees(player.id)]
    return []


def _generate_playing_intents(state: GameState, player: PlayerState) -> list[Intent]:
    """Generate plays, flips and pickups for the current player."""
    intents: list[Intent] = []

    if player.hand:
        intents.extend(_generate_plays(state, player.id, player.hand, PlayCards))
    elif player.face_up_cards:
        intents.extend(_generate_plays(state, player.id, player.face_up_cards, PlayFaceUpCards))
    else:
        # Blind flips: any index may be tried
        intents.extend(
            FlipFaceDown(player.id, i) for i in range(len(player.face_down_cards))
        )

    if state.pyre:
        intents.append(PickupPyre(player.id))

    return intents


def _generate_plays(
    state: GameState,
    player_id: str,
    cards: Sequence[Card],
    intent_cls: type[PlayCards] | type[PlayFaceUpCards],
) -> list[Intent]:
    """One play per playable rank and per count of that rank."""
    intents: list[Intent] = []
    for same_rank in group_by_rank(cards).values():
        if not is_valid_play(same_rank[:1], state.pyre):
            continue
        for count in range(1, len(same_rank) + 1):
            card_ids = tuple(c.id for c in same_rank[:count])
            intents.append(intent_cls(player_id, card_ids))
    return intents
