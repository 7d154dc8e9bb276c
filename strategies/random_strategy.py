"""Random strategy for baseline testing and the easy AI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from strategies.base import CardPlayStrategy

if TYPE_CHECKING:
    from sisters_engine.cards import Card


class RandomStrategy(CardPlayStrategy):
    """Strategy that plays a random playable card.

    Half the time, when it holds several cards of that rank, it plays a random
    number of them. It picks up only when nothing is playable.
    """

    @property
    def name(self) -> str:
        return "Random"

    def thinking_time(self) -> float:
        return self._rng.uniform(0.5, 1.0)

    def choose_cards(self, playable: list[Card], pyre: Sequence[Card]) -> list[Card]:
        if not playable:
            return []

        card = self._rng.choice(playable)
        same_rank = [c for c in playable if c.rank == card.rank]

        if len(same_rank) > 1 and self._rng.random() > 0.5:
            count = self._rng.randint(1, len(same_rank))
            return same_rank[:count]

        # First of the rank, matching a generated single-card play
        return same_rank[:1]
