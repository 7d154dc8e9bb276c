"""Card, Suit, and Rank models for 3 Sisters."""

from __future__ import annotations

import random
from enum import IntEnum
from functools import total_ordering
from typing import ClassVar

# Two decks are shuffled together once this many players sit down
TWO_DECK_PLAYER_THRESHOLD = 5


class Suit(IntEnum):
    """Card suits, in deck-building order."""

    HEARTS = 0
    DIAMONDS = 1
    CLUBS = 2
    SPADES = 3

    def __str__(self) -> str:
        return self.symbol

    @property
    def symbol(self) -> str:
        return {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }[self]

    @property
    def key(self) -> str:
        """Lowercase name used in card ids ("hearts", "spades", ...)."""
        return self.name.lower()

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(IntEnum):
    """Card ranks, valued by how they beat each other on the pyre.

    Three is the lowest card and Two the highest; Two, Eight and Ten are
    special and can be played on anything.
    """

    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    TWO = 15

    def __str__(self) -> str:
        return self.symbol

    @property
    def symbol(self) -> str:
        if self == Rank.TWO:
            return "2"
        elif self.value <= 10:
            return str(self.value)
        else:
            return self.name[0]

    @classmethod
    def from_symbol(cls, symbol: str) -> Rank:
        """Look up a rank by its face symbol ("2".."10", "J", "Q", "K", "A")."""
        for rank in cls:
            if rank.symbol == symbol.upper():
                return rank
        raise ValueError(f"Unknown rank symbol: {symbol!r}")


# Deck-building order (2 first, Ace last), independent of game value
DECK_RANK_ORDER: tuple[Rank, ...] = (Rank.TWO,) + tuple(r for r in Rank if r != Rank.TWO)

WILD_RANK = Rank.TWO
REVERSE_RANK = Rank.EIGHT
BURN_RANK = Rank.TEN
DISCARD_RANK = Rank.THREE


@total_ordering
class Card:
    """A playing card.

    Cards are immutable and interned: the same suit, rank and sub-deck index
    always return the same instance. ``deck`` is ``None`` for single-deck
    games and the sub-deck index when several decks are shuffled together.
    Comparison is by game value, then suit, then sub-deck.
    """

    __slots__ = ("_rank", "_suit", "_deck")

    _instances: ClassVar[dict[tuple[Rank, Suit, int | None], Card]] = {}

    def __new__(cls, rank: Rank, suit: Suit, deck: int | None = None) -> Card:
        key = (rank, suit, deck)
        if key not in cls._instances:
            instance = object.__new__(cls)
            instance._rank = rank
            instance._suit = suit
            instance._deck = deck
            cls._instances[key] = instance
        return cls._instances[key]

    @property
    def rank(self) -> Rank:
        return self._rank

    @property
    def suit(self) -> Suit:
        return self._suit

    @property
    def deck(self) -> int | None:
        return self._deck

    @property
    def id(self) -> str:
        """Stable identifier, e.g. ``hearts-7`` or ``hearts-7-1`` with two decks."""
        base = f"{self._suit.key}-{self._rank.symbol}"
        if self._deck is None:
            return base
        return f"{base}-{self._deck}"

    @property
    def is_wild(self) -> bool:
        return self._rank == WILD_RANK

    @property
    def is_reverse(self) -> bool:
        return self._rank == REVERSE_RANK

    @property
    def is_burn(self) -> bool:
        return self._rank == BURN_RANK

    @property
    def is_special(self) -> bool:
        """Whether the card can be played on anything."""
        return self.is_wild or self.is_reverse or self.is_burn

    @classmethod
    def from_id(cls, card_id: str) -> Card:
        """Parse a card id produced by :attr:`id`."""
        parts = card_id.split("-")
        if len(parts) not in (2, 3):
            raise ValueError(f"Malformed card id: {card_id!r}")
        try:
            suit = Suit[parts[0].upper()]
        except KeyError:
            raise ValueError(f"Unknown suit in card id: {card_id!r}") from None
        rank = Rank.from_symbol(parts[1])
        deck = int(parts[2]) if len(parts) == 3 else None
        return cls(rank, suit, deck)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return (
            self._rank == other._rank
            and self._suit == other._suit
            and self._deck == other._deck
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        if self._rank != other._rank:
            return self._rank < other._rank
        if self._suit != other._suit:
            return self._suit < other._suit
        return (self._deck or 0) < (other._deck or 0)

    def __hash__(self) -> int:
        return hash((self._rank, self._suit, self._deck))

    def __reduce__(self) -> tuple:
        """Support pickling for multiprocessing."""
        return (Card, (self._rank, self._suit, self._deck))

    def __repr__(self) -> str:
        if self._deck is None:
            return f"Card({self._rank.name}, {self._suit.name})"
        return f"Card({self._rank.name}, {self._suit.name}, deck={self._deck})"

    def __str__(self) -> str:
        return f"{self._rank.symbol}{self._suit.symbol}"


def deck_count_for(player_count: int) -> int:
    """Number of 52-card decks to deal for a table of this size."""
    return 2 if player_count >= TWO_DECK_PLAYER_THRESHOLD else 1


def create_deck(deck_count: int = 1) -> list[Card]:
    """Create ``52 * deck_count`` cards, one of each suit and rank per sub-deck."""
    return [
        Card(rank, suit, d if deck_count > 1 else None)
        for d in range(deck_count)
        for suit in Suit
        for rank in DECK_RANK_ORDER
    ]


def shuffle_deck(deck: list[Card], seed: int | None = None) -> list[Card]:
    """Return a shuffled copy of the deck.

    ``random.Random.shuffle`` is a Fisher-Yates pass from the last index down
    to 1, so a given seed always yields the same permutation. Without a seed
    the generator is seeded from the operating system.
    """
    rng = random.Random(seed)
    shuffled = list(deck)
    rng.shuffle(shuffled)
    return shuffled
