"""Intent execution for 3 Sisters.

``execute_intent`` is the strict form and raises ``IllegalIntentError`` with a
reason. ``apply_intent`` is the form coordinators use: an illegal intent
returns the very same state object, so rejection is detected by identity.
"""

from __future__ import annotations

from collections.abc import Sequence

from sisters_engine.cards import Card
from sisters_engine.comparison import (
    is_burn_card,
    is_discard_rank,
    is_reverse_card,
    is_valid_play,
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
from sisters_engine.state import (
    INITIAL_STATE,
    MAX_PLAYERS,
    MIN_PLAYERS,
    ActionType,
    GamePhase,
    GameState,
    PlayerState,
    TurnAction,
    create_initial_state,
)


class IllegalIntentError(Exception):
    """Raised when an illegal intent is attempted."""

    pass


def apply_intent(state: GameState, intent: Intent) -> GameState:
    """Apply an intent, returning ``state`` itself if the intent is illegal.

    Never raises for a rejected intent, whatever its payload.
    """
    try:
        return execute_intent(state, intent)
    except IllegalIntentError:
        return state


def execute_intent(state: GameState, intent: Intent) -> GameState:
    """Execute an intent and return the new game state.

    Args:
        state: Current game state.
        intent: Intent to execute.

    Returns:
        New game state after the intent.

    Raises:
        IllegalIntentError: If the intent is not legal.
    """
    if state.is_game_over and not isinstance(intent, ResetGame):
        raise IllegalIntentError("Game is already over")

    match intent:
        case StartGame():
            return _execute_start_game(state, intent)
        case DiscardThrees():
            return _execute_discard_threes(state, intent)
        case FinishDiscardingThrees():
            return _execute_finish_discarding_threes(state)
        case PlayCards():
            return _execute_play_cards(state, intent)
        case PlayFaceUpCards():
            return _execute_play_face_up_cards(state, intent)
        case FlipFaceDown():
            return _execute_flip_face_down(state, intent)
        case PickupPyre():
            return _execute_pickup_pyre(state, intent)
        case ResetGame():
            return INITIAL_STATE
        case _:
            raise IllegalIntentError(f"Unknown intent type: {type(intent)}")


def run_discard_phase(state: GameState) -> GameState:
    """Shed every player's 3s in seat order, then start normal play.

    This is what a coordinator does right after dealing. States outside the
    discard phase are returned unchanged.
    """
    if state.phase != GamePhase.DISCARDING_THREES:
        return state
    for player in state.players:
        state = apply_intent(state, DiscardThrees(player.id))
    return apply_intent(state, FinishDiscardingThrees())


def _execute_start_game(state: GameState, intent: StartGame) -> GameState:
    """Deal a new game from the setup phase."""
    if state.phase != GamePhase.SETUP:
        raise IllegalIntentError("Game can only be started from setup")

    if not isinstance(intent.player_names, (tuple, list)):
        raise IllegalIntentError("Player names must be a sequence")
    names = tuple(intent.player_names)
    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        raise IllegalIntentError(f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players")
    if not all(isinstance(name, str) for name in names):
        raise IllegalIntentError("Player names must be strings")
    if intent.seed is not None and (
        not isinstance(intent.seed, int) or isinstance(intent.seed, bool)
    ):
        raise IllegalIntentError("Seed must be an integer")

    players = [(f"player-{i}", name) for i, name in enumerate(names)]
    return create_initial_state(players, seed=intent.seed)


def _execute_discard_threes(state: GameState, intent: DiscardThrees) -> GameState:
    """Move every 3 in a player's hand to the discard pile."""
    if state.phase != GamePhase.DISCARDING_THREES:
        raise IllegalIntentError("Threes can only be discarded before play starts")

    player_index = state.find_player_index(intent.player_id)
    if player_index is None:
        raise IllegalIntentError(f"Unknown player {intent.player_id!r}")

    player = state.players[player_index]
    threes = tuple(c for c in player.hand if is_discard_rank(c))
    if not threes:
        raise IllegalIntentError("No threes to discard")

    new_hand = tuple(c for c in player.hand if not is_discard_rank(c))
    new_state = (
        state.with_player(player_index, player.with_hand(new_hand))
        .with_discard_pile(state.discard_pile + threes)
        .with_turn_action(
            TurnAction(player.id, ActionType.DISCARD_THREE, threes, intent.timestamp)
        )
    )

    if state.first_three_discarder_id is None:
        new_state = new_state.with_first_three_discarder(player.id)
    return new_state


def _execute_finish_discarding_threes(state: GameState) -> GameState:
    """Start play with the seat after the first three-discarder."""
    if state.phase != GamePhase.DISCARDING_THREES:
        raise IllegalIntentError("Not in the discard phase")

    starting_index = 0
    if state.first_three_discarder_id is not None:
        discarder_index = state.find_player_index(state.first_three_discarder_id)
        if discarder_index is not None:
            starting_index = (discarder_index + 1) % state.player_count

    return state.with_phase(GamePhase.PLAYING).with_current_player_index(starting_index)


def _execute_play_cards(state: GameState, intent: PlayCards) -> GameState:
    """Play same-rank cards from the hand."""
    player_index, player = _require_current_player(state, intent.player_id)

    cards, remaining = _take_cards(player.hand, intent.card_ids)
    if not is_valid_play(cards, state.pyre):
        raise IllegalIntentError("Cards cannot be played on the pyre")

    return _resolve_play(
        state, player_index, player.with_hand(remaining), cards, intent.timestamp
    )


def _execute_play_face_up_cards(state: GameState, intent: PlayFaceUpCards) -> GameState:
    """Play same-rank face-up table cards once the hand is empty."""
    player_index, player = _require_current_player(state, intent.player_id)

    if player.hand:
        raise IllegalIntentError("Face-up cards can only be played once the hand is empty")

    cards, remaining = _take_cards(player.face_up_cards, intent.card_ids)
    if not is_valid_play(cards, state.pyre):
        raise IllegalIntentError("Cards cannot be played on the pyre")

    return _resolve_play(
        state,
        player_index,
        player.with_face_up_cards(remaining),
        cards,
        intent.timestamp,
    )


def _execute_flip_face_down(state: GameState, intent: FlipFaceDown) -> GameState:
    """Reveal a face-down card blind; play it or pick up the pyre with it."""
    player_index, player = _require_current_player(state, intent.player_id)

    if player.hand or player.face_up_cards:
        raise IllegalIntentError("Face-down cards are flipped only when hand and face-up are empty")

    card_index = intent.card_index
    if not isinstance(card_index, int) or isinstance(card_index, bool):
        raise IllegalIntentError("Card index must be an integer")
    if not 0 <= card_index < len(player.face_down_cards):
        raise IllegalIntentError(f"No face-down card at index {card_index}")

    card = player.face_down_cards[card_index]
    remaining = player.face_down_cards[:card_index] + player.face_down_cards[card_index + 1:]
    player = player.with_face_down_cards(remaining)

    if is_valid_play((card,), state.pyre):
        return _resolve_play(
            state,
            player_index,
            player,
            (card,),
            intent.timestamp,
            plain_action=ActionType.FLIP_FACE_DOWN,
        )

    # Failed flip: the card joins the pyre in the player's hand
    picked_up = state.pyre + (card,)
    new_state = (
        state.with_player(player_index, player.with_hand(player.hand + picked_up))
        .with_pyre(())
        .with_turn_action(
            TurnAction(player.id, ActionType.PICKUP, picked_up, intent.timestamp)
        )
    )
    return _end_turn(new_state)


def _execute_pickup_pyre(state: GameState, intent: PickupPyre) -> GameState:
    """Take the whole pyre into the hand."""
    player_index, player = _require_current_player(state, intent.player_id)

    if not state.pyre:
        raise IllegalIntentError("Pyre is empty")

    new_state = (
        state.with_player(player_index, player.with_hand(player.hand + state.pyre))
        .with_pyre(())
        .with_turn_action(
            TurnAction(player.id, ActionType.PICKUP, state.pyre, intent.timestamp)
        )
    )
    return _end_turn(new_state)


def _require_current_player(state: GameState, player_id: str) -> tuple[int, PlayerState]:
    """Check the game is in play and it is this player's turn."""
    if state.phase != GamePhase.PLAYING:
        raise IllegalIntentError("Game is not in play")

    player_index = state.find_player_index(player_id)
    if player_index is None:
        raise IllegalIntentError(f"Unknown player {player_id!r}")
    if player_index != state.current_player_index:
        raise IllegalIntentError("Not this player's turn")

    return player_index, state.players[player_index]


def _take_cards(
    source: tuple[Card, ...], card_ids: Sequence[str]
) -> tuple[tuple[Card, ...], tuple[Card, ...]]:
    """Resolve card ids against a pile.

    Returns:
        Tuple of (taken cards in request order, cards left in the pile).
    """
    if not isinstance(card_ids, (tuple, list)) or not card_ids:
        raise IllegalIntentError("No cards named")
    if not all(isinstance(card_id, str) for card_id in card_ids):
        raise IllegalIntentError("Card ids must be strings")
    if len(set(card_ids)) != len(card_ids):
        raise IllegalIntentError("Card named more than once")

    by_id = {card.id: card for card in source}
    missing = [card_id for card_id in card_ids if card_id not in by_id]
    if missing:
        raise IllegalIntentError(f"Cards not held: {', '.join(missing)}")

    taken = tuple(by_id[card_id] for card_id in card_ids)
    remaining = tuple(c for c in source if c.id not in set(card_ids))
    return taken, remaining


def _resolve_play(
    state: GameState,
    player_index: int,
    player: PlayerState,
    cards: tuple[Card, ...],
    timestamp: float,
    plain_action: ActionType = ActionType.PLAY,
) -> GameState:
    """Put played cards on the pyre and apply burn/reverse effects.

    ``player`` is the acting player with the cards already removed.
    """
    new_state = state.with_player(player_index, player)

    if any(is_burn_card(c) for c in cards):
        # Burn clears the pyre; the same player leads again
        new_state = new_state.with_pyre(()).with_discard_pile(
            state.discard_pile + state.pyre + cards
        )
        action_type = ActionType.BURN
        next_index = state.current_player_index
    elif any(is_reverse_card(c) for c in cards):
        direction = state.direction.reversed
        new_state = new_state.with_pyre(state.pyre + cards).with_direction(direction)
        action_type = ActionType.REVERSE
        next_index = new_state.next_player_index(direction)
    else:
        new_state = new_state.with_pyre(state.pyre + cards)
        action_type = plain_action
        next_index = new_state.next_player_index()

    new_state = new_state.with_turn_action(
        TurnAction(player.id, action_type, cards, timestamp)
    )

    # Winner never becomes current again
    if not player.has_cards:
        return new_state.with_winner(player.id)

    return new_state.with_current_player_index(next_index)


def _end_turn(state: GameState) -> GameState:
    """Pass the turn on in the current direction."""
    return state.with_current_player_index(state.next_player_index())
