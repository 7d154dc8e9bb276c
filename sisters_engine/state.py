"""Immutable game state models for 3 Sisters."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum, IntEnum

from sisters_engine.cards import Card, create_deck, deck_count_for, shuffle_deck

FACE_DOWN_CARDS_COUNT = 3
FACE_UP_CARDS_COUNT = 3
MIN_PLAYERS = 2
MAX_PLAYERS = 8


class GamePhase(str, Enum):
    """Lifecycle of a game."""

    SETUP = "setup"  # Before the deal
    DISCARDING_THREES = "discardingThrees"  # Players shed their 3s
    PLAYING = "playing"  # Normal turns
    FINISHED = "finished"  # Someone emptied every pile


class Direction(IntEnum):
    """Order in which turns pass around the table."""

    CLOCKWISE = 1
    COUNTER_CLOCKWISE = -1

    @property
    def reversed(self) -> Direction:
        return Direction(-self.value)


class ActionType(str, Enum):
    """Kind of entry recorded in the turn history."""

    PLAY = "play"
    PICKUP = "pickup"
    DISCARD_THREE = "discardThree"
    BURN = "burn"
    FLIP_FACE_DOWN = "flipFaceDown"
    REVERSE = "reverse"


@dataclass(frozen=True, slots=True)
class PlayerState:
    """State of a single player.

    Attributes:
        id: Stable player identifier
        name: Display name
        hand: Cards in hand (hidden from other players)
        face_up_cards: Table cards visible to everyone, played once the hand is empty
        face_down_cards: Blind table cards, flipped once hand and face-up are empty
        is_connected: Whether the player's client is attached
    """

    id: str
    name: str
    hand: tuple[Card, ...] = ()
    face_up_cards: tuple[Card, ...] = ()
    face_down_cards: tuple[Card, ...] = ()
    is_connected: bool = True

    @property
    def total_cards(self) -> int:
        return len(self.hand) + len(self.face_up_cards) + len(self.face_down_cards)

    @property
    def has_cards(self) -> bool:
        return self.total_cards > 0

    def with_hand(self, hand: tuple[Card, ...]) -> PlayerState:
        """Return new state with updated hand."""
        return replace(self, hand=hand)

    def with_face_up_cards(self, face_up_cards: tuple[Card, ...]) -> PlayerState:
        """Return new state with updated face-up cards."""
        return replace(self, face_up_cards=face_up_cards)

    def with_face_down_cards(self, face_down_cards: tuple[Card, ...]) -> PlayerState:
        """Return new state with updated face-down cards."""
        return replace(self, face_down_cards=face_down_cards)

    def with_connected(self, is_connected: bool) -> PlayerState:
        """Return new state with updated connection flag."""
        return replace(self, is_connected=is_connected)


@dataclass(frozen=True, slots=True)
class TurnAction:
    """One entry of the turn history. Used for display only."""

    player_id: str
    type: ActionType
    cards: tuple[Card, ...]
    timestamp: float

    def __str__(self) -> str:
        cards = ", ".join(str(c) for c in self.cards)
        return f"{self.player_id} {self.type.value} [{cards}]"


@dataclass(frozen=True, slots=True)
class GameState:
    """Complete immutable game state.

    Attributes:
        phase: Current lifecycle phase
        players: Players in seat order
        current_player_index: Seat whose turn it is
        direction: Turn order, flipped by reverse cards
        pyre: Shared pile being built on (last element is the top)
        discard_pile: Burned and discarded cards
        turn_history: Append-only log of accepted actions
        winner: Id of the winning player, set only once the game is finished
        first_three_discarder_id: First player to shed a 3; the seat after
            them leads the first trick
    """

    phase: GamePhase = GamePhase.SETUP
    players: tuple[PlayerState, ...] = ()
    current_player_index: int = 0
    direction: Direction = Direction.CLOCKWISE
    pyre: tuple[Card, ...] = ()
    discard_pile: tuple[Card, ...] = ()
    turn_history: tuple[TurnAction, ...] = ()
    winner: str | None = None
    first_three_discarder_id: str | None = None

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def current_player_state(self) -> PlayerState | None:
        """State of the player whose turn it is, None before the deal."""
        if not self.players:
            return None
        return self.players[self.current_player_index]

    @property
    def is_game_over(self) -> bool:
        """Whether the game has ended."""
        return self.winner is not None

    @property
    def total_cards(self) -> int:
        """Every card in play, across all players and shared piles."""
        return (
            sum(p.total_cards for p in self.players)
            + len(self.pyre)
            + len(self.discard_pile)
        )

    def all_cards(self) -> list[Card]:
        """Every card in play, for conservation checks."""
        cards: list[Card] = []
        for player in self.players:
            cards.extend(player.hand)
            cards.extend(player.face_up_cards)
            cards.extend(player.face_down_cards)
        cards.extend(self.pyre)
        cards.extend(self.discard_pile)
        return cards

    def find_player_index(self, player_id: str) -> int | None:
        """Seat index of a player, or None if nobody has that id."""
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None

    def get_player(self, player_id: str) -> PlayerState | None:
        index = self.find_player_index(player_id)
        return None if index is None else self.players[index]

    def next_player_index(self, direction: Direction | None = None) -> int:
        """Seat that follows the current one in the given (or current) direction."""
        step = int(direction if direction is not None else self.direction)
        count = self.player_count
        return (self.current_player_index + step + count) % count

    def with_players(self, players: tuple[PlayerState, ...]) -> GameState:
        """Return new state with updated players."""
        return replace(self, players=players)

    def with_player(self, index: int, player: PlayerState) -> GameState:
        """Return new state with one seat replaced."""
        players = list(self.players)
        players[index] = player
        return replace(self, players=tuple(players))

    def with_phase(self, phase: GamePhase) -> GameState:
        """Return new state with updated phase."""
        return replace(self, phase=phase)

    def with_current_player_index(self, current_player_index: int) -> GameState:
        """Return new state with updated current player."""
        return replace(self, current_player_index=current_player_index)

    def with_direction(self, direction: Direction) -> GameState:
        """Return new state with updated direction."""
        return replace(self, direction=direction)

    def with_pyre(self, pyre: tuple[Card, ...]) -> GameState:
        """Return new state with updated pyre."""
        return replace(self, pyre=pyre)

    def with_discard_pile(self, discard_pile: tuple[Card, ...]) -> GameState:
        """Return new state with updated discard pile."""
        return replace(self, discard_pile=discard_pile)

    def with_turn_action(self, action: TurnAction) -> GameState:
        """Return new state with an action appended to the history."""
        return replace(self, turn_history=self.turn_history + (action,))

    def with_first_three_discarder(self, player_id: str | None) -> GameState:
        """Return new state with the first three-discarder recorded."""
        return replace(self, first_three_discarder_id=player_id)

    def with_winner(self, winner: str) -> GameState:
        """Return new state with winner set and the game finished."""
        return replace(self, winner=winner, phase=GamePhase.FINISHED)

    def with_player_connection(self, player_id: str, is_connected: bool) -> GameState:
        """Return new state with a player's connection flag updated.

        Unknown ids leave the state unchanged.
        """
        index = self.find_player_index(player_id)
        if index is None:
            return self
        return self.with_player(index, self.players[index].with_connected(is_connected))


INITIAL_STATE = GameState()


def create_initial_state(
    players: Sequence[tuple[str, str]],
    seed: int | None = None,
    deck: list[Card] | None = None,
) -> GameState:
    """Deal a new game.

    Args:
        players: Ordered ``(id, name)`` pairs, one per seat.
        seed: Random seed for shuffling (only used if deck is None).
        deck: Optional pre-ordered deck. If None, creates and shuffles enough
            decks for the table.

    Returns:
        A state in the discard-threes phase: every player holds three
        face-down and three face-up cards, and the rest of the deck is dealt
        round-robin into hands.

    Raises:
        ValueError: If the player count is outside the supported range, ids
            repeat, or the deck cannot cover the table cards.
    """
    if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
        raise ValueError(f"Need {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
    ids = [player_id for player_id, _ in players]
    if len(set(ids)) != len(ids):
        raise ValueError("Player ids must be unique")

    if deck is None:
        deck = shuffle_deck(create_deck(deck_count_for(len(players))), seed)

    per_player = FACE_DOWN_CARDS_COUNT + FACE_UP_CARDS_COUNT
    if len(deck) < per_player * len(players):
        raise ValueError("Deck too small for the table cards")

    position = 0
    face_down: list[tuple[Card, ...]] = []
    for _ in players:
        face_down.append(tuple(deck[position:position + FACE_DOWN_CARDS_COUNT]))
        position += FACE_DOWN_CARDS_COUNT

    face_up: list[tuple[Card, ...]] = []
    for _ in players:
        face_up.append(tuple(deck[position:position + FACE_UP_CARDS_COUNT]))
        position += FACE_UP_CARDS_COUNT

    # Rest of the deck goes out one card at a time
    hands: list[list[Card]] = [[] for _ in players]
    for offset, card in enumerate(deck[position:]):
        hands[offset % len(players)].append(card)

    return GameState(
        phase=GamePhase.DISCARDING_THREES,
        players=tuple(
            PlayerState(
                id=player_id,
                name=name,
                hand=tuple(hands[i]),
                face_up_cards=face_up[i],
                face_down_cards=face_down[i],
            )
            for i, (player_id, name) in enumerate(players)
        ),
        current_player_index=0,
        direction=Direction.CLOCKWISE,
    )
