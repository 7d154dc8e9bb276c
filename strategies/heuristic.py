"""Rule-based strategy for the medium and hard AI.

Medium:
1. Burn a pyre of five or more cards
2. Play every card of the lowest regular rank
3. Otherwise a wild, then a reverse, then a burn

Hard:
1. Burn a pyre of four or more cards
2. Play the regular rank with the most copies (lowest rank on ties)
3. Otherwise a reverse, then a burn on a non-empty pyre, and a wild last
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from sisters_engine.comparison import is_burn_card, is_reverse_card, is_wild_card, sort_cards_by_rank
from strategies.base import CardPlayStrategy

if TYPE_CHECKING:
    from sisters_engine.cards import Card

DIFFICULTIES = ("medium", "hard")

# Pyre size at which each difficulty spends a burn
BURN_THRESHOLDS = {"medium": 5, "hard": 4}

THINKING_TIMES = {"medium": (0.8, 1.5), "hard": (1.0, 2.0)}


class HeuristicStrategy(CardPlayStrategy):
    """Strategy choosing cards by fixed priorities for its difficulty."""

    def __init__(self, difficulty: str = "medium", seed: int | None = None):
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty}")
        super().__init__(seed)
        self.difficulty = difficulty

    @property
    def name(self) -> str:
        return f"Heuristic ({self.difficulty})"

    def thinking_time(self) -> float:
        low, high = THINKING_TIMES[self.difficulty]
        return self._rng.uniform(low, high)

    def choose_cards(self, playable: list[Card], pyre: Sequence[Card]) -> list[Card]:
        regular = [c for c in playable if not c.is_special]
        wilds = [c for c in playable if is_wild_card(c)]
        reverses = [c for c in playable if is_reverse_card(c)]
        burns = [c for c in playable if is_burn_card(c)]

        if burns and len(pyre) >= BURN_THRESHOLDS[self.difficulty]:
            return burns[:1]

        if self.difficulty == "medium":
            return self._choose_medium(regular, wilds, reverses, burns)
        return self._choose_hard(regular, wilds, reverses, burns, pyre)

    def _choose_medium(
        self,
        regular: list[Card],
        wilds: list[Card],
        reverses: list[Card],
        burns: list[Card],
    ) -> list[Card]:
        if regular:
            lowest_rank = sort_cards_by_rank(regular)[0].rank
            return [c for c in regular if c.rank == lowest_rank]

        for group in (wilds, reverses, burns):
            if group:
                return group[:1]
        return []

    def _choose_hard(
        self,
        regular: list[Card],
        wilds: list[Card],
        reverses: list[Card],
        burns: list[Card],
        pyre: Sequence[Card],
    ) -> list[Card]:
        if regular:
            counts: dict = {}
            for card in regular:
                counts[card.rank] = counts.get(card.rank, 0) + 1
            best_rank = min(counts, key=lambda rank: (-counts[rank], rank))
            return [c for c in regular if c.rank == best_rank]

        # Wilds are saved for when nothing else goes
        if reverses:
            return reverses[:1]
        if burns and pyre:
            return burns[:1]
        if wilds:
            return wilds[:1]
        return burns[:1]
