"""Rank comparison and play validation against the pyre."""

from __future__ import annotations

from collections.abc import Sequence

from sisters_engine.cards import BURN_RANK, DISCARD_RANK, REVERSE_RANK, WILD_RANK, Card, Rank


def rank_value(rank: Rank) -> int:
    """Game value of a rank (3 lowest, Two highest)."""
    return int(rank)


def is_wild_card(card: Card) -> bool:
    return card.rank == WILD_RANK


def is_reverse_card(card: Card) -> bool:
    return card.rank == REVERSE_RANK


def is_burn_card(card: Card) -> bool:
    return card.rank == BURN_RANK


def is_discard_rank(card: Card) -> bool:
    """Whether the card is shed during the discard-threes phase."""
    return card.rank == DISCARD_RANK


def get_last_non_wild_card(pyre: Sequence[Card]) -> Card | None:
    """Return the card that sets the rank requirement for the next play.

    Wilds and reverses resting on the pyre impose nothing, so the scan skips
    them from the top down. Returns None when the pyre is empty or holds only
    Twos and Eights.
    """
    for card in reversed(pyre):
        if not (is_wild_card(card) or is_reverse_card(card)):
            return card
    return None


def can_play_on(card: Card, pyre: Sequence[Card]) -> bool:
    """Whether a single card may be played on the pyre."""
    if card.is_special:
        return True

    requirement = get_last_non_wild_card(pyre)
    if requirement is None:
        return True

    return rank_value(card.rank) >= rank_value(requirement.rank)


def is_valid_play(cards: Sequence[Card], pyre: Sequence[Card]) -> bool:
    """Whether a group of cards is a legal play.

    The group must be non-empty and share one rank; it is then judged by its
    first card. A group of special cards triggers its effect once.
    """
    if not cards:
        return False

    first_rank = cards[0].rank
    if any(c.rank != first_rank for c in cards):
        return False

    return can_play_on(cards[0], pyre)


def compare_cards(a: Card, b: Card) -> int:
    """Negative, zero or positive as ``a`` ranks below, level with or above ``b``."""
    return rank_value(a.rank) - rank_value(b.rank)


def sort_cards_by_rank(cards: Sequence[Card]) -> list[Card]:
    """Return the cards ordered lowest rank first (stable within a rank)."""
    return sorted(cards, key=lambda c: rank_value(c.rank))
