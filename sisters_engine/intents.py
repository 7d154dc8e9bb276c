"""Intent types for 3 Sisters.

An intent is what a player (human or AI) asks the engine to do. Intents are
plain values; the reducer decides whether they are legal.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum, auto


class IntentType(IntEnum):
    """Type of intent."""

    START_GAME = auto()
    DISCARD_THREES = auto()
    FINISH_DISCARDING_THREES = auto()
    PLAY_CARDS = auto()
    PLAY_FACE_UP_CARDS = auto()
    FLIP_FACE_DOWN = auto()
    PICKUP_PYRE = auto()
    RESET_GAME = auto()


@dataclass(frozen=True, slots=True)
class Intent(ABC):
    """Base class for all intents.

    ``timestamp`` is captured when the intent is created and copied into the
    turn history, so applying an intent never reads the clock.
    """

    timestamp: float = field(default_factory=time.time, kw_only=True, compare=False)

    @property
    @abstractmethod
    def intent_type(self) -> IntentType:
        """The type of this intent."""
        ...

    @abstractmethod
    def __str__(self) -> str:
        """Human-readable intent description."""
        ...


@dataclass(frozen=True, slots=True)
class StartGame(Intent):
    """Deal a new game for the named players."""

    player_names: tuple[str, ...]
    seed: int | None = None  # Shuffle seed, for reproducible games

    @property
    def intent_type(self) -> IntentType:
        return IntentType.START_GAME

    def __str__(self) -> str:
        return f"Start game for {', '.join(self.player_names)}"


@dataclass(frozen=True, slots=True)
class DiscardThrees(Intent):
    """Shed every 3 in the player's hand."""

    player_id: str

    @property
    def intent_type(self) -> IntentType:
        return IntentType.DISCARD_THREES

    def __str__(self) -> str:
        return f"{self.player_id} discards threes"


@dataclass(frozen=True, slots=True)
class FinishDiscardingThrees(Intent):
    """Close the discard phase and start normal play."""

    @property
    def intent_type(self) -> IntentType:
        return IntentType.FINISH_DISCARDING_THREES

    def __str__(self) -> str:
        return "Finish discarding threes"


@dataclass(frozen=True, slots=True)
class PlayCards(Intent):
    """Play one or more same-rank cards from the hand."""

    player_id: str
    card_ids: tuple[str, ...]

    @property
    def intent_type(self) -> IntentType:
        return IntentType.PLAY_CARDS

    def __str__(self) -> str:
        return f"{self.player_id} plays {', '.join(self.card_ids)}"


@dataclass(frozen=True, slots=True)
class PlayFaceUpCards(Intent):
    """Play one or more same-rank face-up table cards (hand must be empty)."""

    player_id: str
    card_ids: tuple[str, ...]

    @property
    def intent_type(self) -> IntentType:
        return IntentType.PLAY_FACE_UP_CARDS

    def __str__(self) -> str:
        return f"{self.player_id} plays face-up {', '.join(self.card_ids)}"


@dataclass(frozen=True, slots=True)
class FlipFaceDown(Intent):
    """Blindly flip a face-down table card and try to play it."""

    player_id: str
    card_index: int

    @property
    def intent_type(self) -> IntentType:
        return IntentType.FLIP_FACE_DOWN

    def __str__(self) -> str:
        return f"{self.player_id} flips face-down card {self.card_index}"


@dataclass(frozen=True, slots=True)
class PickupPyre(Intent):
    """Take the whole pyre into the hand."""

    player_id: str

    @property
    def intent_type(self) -> IntentType:
        return IntentType.PICKUP_PYRE

    def __str__(self) -> str:
        return f"{self.player_id} picks up the pyre"


@dataclass(frozen=True, slots=True)
class ResetGame(Intent):
    """Return to an empty pre-deal table."""

    @property
    def intent_type(self) -> IntentType:
        return IntentType.RESET_GAME

    def __str__(self) -> str:
        return "Reset game"
