"""Tests for intent execution."""

import random
from collections import Counter

import pytest

from sisters_engine.cards import Card, Rank, Suit
from sisters_engine.intent_generator import generate_legal_intents
from sisters_engine.intents import (
    DiscardThrees,
    FinishDiscardingThrees,
    FlipFaceDown,
    PickupPyre,
    PlayCards,
    PlayFaceUpCards,
    ResetGame,
    StartGame,
)
from sisters_engine.reducer import (
    IllegalIntentError,
    apply_intent,
    execute_intent,
    run_discard_phase,
)
from sisters_engine.state import (
    INITIAL_STATE,
    ActionType,
    Direction,
    GamePhase,
    GameState,
    PlayerState,
)

# Spare blind cards so emptying a hand does not end the game
SPARES = (
    Card(Rank.KING, Suit.CLUBS),
    Card(Rank.KING, Suit.DIAMONDS),
    Card(Rank.KING, Suit.SPADES),
)


def h(rank: Rank) -> Card:
    return Card(rank, Suit.HEARTS)


def make_state(
    hands,
    pyre=(),
    current=0,
    direction=Direction.CLOCKWISE,
    face_up=None,
    face_down=None,
    phase=GamePhase.PLAYING,
) -> GameState:
    count = len(hands)
    face_up = face_up or [()] * count
    face_down = face_down or [(SPARES[i],) for i in range(count)]
    players = tuple(
        PlayerState(
            id=f"p{i}",
            name=f"P{i}",
            hand=tuple(hands[i]),
            face_up_cards=tuple(face_up[i]),
            face_down_cards=tuple(face_down[i]),
        )
        for i in range(count)
    )
    return GameState(
        phase=phase,
        players=players,
        current_player_index=current,
        direction=direction,
        pyre=tuple(pyre),
    )


class TestStartGame:
    def test_three_player_deal_totals_52(self):
        state = apply_intent(INITIAL_STATE, StartGame(("Ann", "Ben", "Cat"), seed=1))
        assert state.phase == GamePhase.DISCARDING_THREES
        assert [p.id for p in state.players] == ["player-0", "player-1", "player-2"]
        assert [p.name for p in state.players] == ["Ann", "Ben", "Cat"]
        assert state.total_cards == 52
        assert state.pyre == ()
        assert state.discard_pile == ()
        assert state.turn_history == ()

    def test_two_decks_for_five_players(self):
        state = apply_intent(INITIAL_STATE, StartGame(tuple("ABCDE"), seed=1))
        assert state.total_cards == 104

    def test_only_from_setup(self):
        state = apply_intent(INITIAL_STATE, StartGame(("Ann", "Ben"), seed=1))
        assert apply_intent(state, StartGame(("X", "Y"))) is state

    def test_rejects_too_few_players(self):
        assert apply_intent(INITIAL_STATE, StartGame(("Solo",))) is INITIAL_STATE
        assert apply_intent(INITIAL_STATE, StartGame(())) is INITIAL_STATE

    def test_rejects_too_many_players(self):
        names = tuple(f"P{i}" for i in range(9))
        assert apply_intent(INITIAL_STATE, StartGame(names)) is INITIAL_STATE

    def test_garbage_payload_is_noop(self):
        assert apply_intent(INITIAL_STATE, StartGame(None)) is INITIAL_STATE
        assert apply_intent(INITIAL_STATE, StartGame("AB")) is INITIAL_STATE
        assert apply_intent(INITIAL_STATE, StartGame(("A", 2))) is INITIAL_STATE

    def test_bad_seed_is_noop(self):
        assert apply_intent(INITIAL_STATE, StartGame(("A", "B"), seed=[1])) is INITIAL_STATE
        assert apply_intent(INITIAL_STATE, StartGame(("A", "B"), seed="1")) is INITIAL_STATE
        assert apply_intent(INITIAL_STATE, StartGame(("A", "B"), seed=True)) is INITIAL_STATE


class TestDiscardThrees:
    def _state(self):
        hands = [
            (h(Rank.FIVE), Card(Rank.THREE, Suit.CLUBS), Card(Rank.THREE, Suit.SPADES)),
            (h(Rank.THREE), h(Rank.NINE)),
            (h(Rank.JACK),),
        ]
        return make_state(hands, phase=GamePhase.DISCARDING_THREES)

    def test_moves_threes_to_discard(self):
        state = self._state()
        new_state = apply_intent(state, DiscardThrees("p0"))
        assert new_state.players[0].hand == (h(Rank.FIVE),)
        assert new_state.discard_pile == (
            Card(Rank.THREE, Suit.CLUBS),
            Card(Rank.THREE, Suit.SPADES),
        )
        assert new_state.turn_history[-1].type == ActionType.DISCARD_THREE
        assert new_state.first_three_discarder_id == "p0"

    def test_first_discarder_not_overwritten(self):
        state = apply_intent(self._state(), DiscardThrees("p1"))
        state = apply_intent(state, DiscardThrees("p0"))
        assert state.first_three_discarder_id == "p1"

    def test_no_threes_is_noop(self):
        state = self._state()
        assert apply_intent(state, DiscardThrees("p2")) is state

    def test_unknown_player_is_noop(self):
        state = self._state()
        assert apply_intent(state, DiscardThrees("nobody")) is state

    def test_only_in_discard_phase(self):
        state = make_state([(h(Rank.THREE),), (h(Rank.FOUR),)])
        assert apply_intent(state, DiscardThrees("p0")) is state

    def test_finish_starts_after_first_discarder(self):
        state = apply_intent(self._state(), DiscardThrees("p1"))
        state = apply_intent(state, FinishDiscardingThrees())
        assert state.phase == GamePhase.PLAYING
        assert state.current_player_index == 2

    def test_finish_wraps_around(self):
        state = make_state(
            [(h(Rank.FOUR),), (h(Rank.FIVE),), (h(Rank.THREE),)],
            phase=GamePhase.DISCARDING_THREES,
        )
        state = apply_intent(state, DiscardThrees("p2"))
        state = apply_intent(state, FinishDiscardingThrees())
        assert state.current_player_index == 0

    def test_finish_without_discards_starts_at_zero(self):
        state = make_state(
            [(h(Rank.FOUR),), (h(Rank.FIVE),)], phase=GamePhase.DISCARDING_THREES
        )
        state = apply_intent(state, FinishDiscardingThrees())
        assert state.current_player_index == 0
        assert state.phase == GamePhase.PLAYING

    def test_run_discard_phase(self):
        state = run_discard_phase(self._state())
        assert state.phase == GamePhase.PLAYING
        assert state.first_three_discarder_id == "p0"
        assert state.current_player_index == 1
        assert len(state.discard_pile) == 3
        assert all(c.rank != Rank.THREE for p in state.players for c in p.hand)


class TestPlayCards:
    def test_play_on_lower_card(self):
        state = make_state([(h(Rank.SEVEN), h(Rank.NINE)), (h(Rank.FOUR),), (h(Rank.JACK),)],
                           pyre=(h(Rank.FIVE),))
        new_state = apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert new_state.pyre == (h(Rank.FIVE), h(Rank.SEVEN))
        assert new_state.players[0].hand == (h(Rank.NINE),)
        assert new_state.current_player_index == 1
        assert new_state.turn_history[-1].type == ActionType.PLAY

    def test_play_several_of_a_rank(self):
        nines = (h(Rank.NINE), Card(Rank.NINE, Suit.CLUBS))
        state = make_state([nines + (h(Rank.ACE),), (h(Rank.FOUR),)])
        new_state = apply_intent(state, PlayCards("p0", ("hearts-9", "clubs-9")))
        assert new_state.pyre == nines
        assert new_state.players[0].hand == (h(Rank.ACE),)

    def test_too_low_is_noop(self):
        state = make_state([(h(Rank.FOUR), h(Rank.NINE)), (h(Rank.FOUR),)], pyre=(h(Rank.FIVE),))
        assert apply_intent(state, PlayCards("p0", ("hearts-4",))) is state

    def test_strict_form_raises_with_reason(self):
        state = make_state([(h(Rank.FOUR), h(Rank.NINE)), (h(Rank.FOUR),)], pyre=(h(Rank.FIVE),))
        with pytest.raises(IllegalIntentError):
            execute_intent(state, PlayCards("p0", ("hearts-4",)))

    def test_mixed_ranks_is_noop(self):
        state = make_state([(h(Rank.SEVEN), h(Rank.NINE)), (h(Rank.FOUR),)])
        assert apply_intent(state, PlayCards("p0", ("hearts-7", "hearts-9"))) is state

    def test_not_your_turn_is_noop(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)])
        assert apply_intent(state, PlayCards("p1", ("hearts-9",))) is state

    def test_card_not_held_is_noop(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)])
        assert apply_intent(state, PlayCards("p0", ("hearts-9",))) is state

    def test_duplicate_ids_are_noop(self):
        state = make_state([(h(Rank.SEVEN), h(Rank.NINE)), (h(Rank.NINE),)])
        assert apply_intent(state, PlayCards("p0", ("hearts-7", "hearts-7"))) is state

    def test_empty_play_is_noop(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)])
        assert apply_intent(state, PlayCards("p0", ())) is state

    def test_garbage_payload_is_noop(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)])
        assert apply_intent(state, PlayCards("p0", [["hearts-7"]])) is state
        assert apply_intent(state, PlayCards("p0", None)) is state
        assert apply_intent(state, PlayCards(None, ("hearts-7",))) is state

    def test_not_in_play_phase(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)], phase=GamePhase.DISCARDING_THREES)
        assert apply_intent(state, PlayCards("p0", ("hearts-7",))) is state

    def test_same_illegal_intent_twice(self):
        state = make_state([(h(Rank.FOUR), h(Rank.NINE)), (h(Rank.FOUR),)], pyre=(h(Rank.FIVE),))
        intent = PlayCards("p0", ("hearts-4",))
        assert apply_intent(apply_intent(state, intent), intent) is state

    def test_old_state_unchanged(self):
        state = make_state([(h(Rank.SEVEN), h(Rank.NINE)), (h(Rank.FOUR),)])
        apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert state.players[0].hand == (h(Rank.SEVEN), h(Rank.NINE))
        assert state.pyre == ()

    def test_timestamp_copied_into_history(self):
        state = make_state([(h(Rank.SEVEN), h(Rank.NINE)), (h(Rank.FOUR),)])
        new_state = apply_intent(state, PlayCards("p0", ("hearts-7",), timestamp=123.0))
        assert new_state.turn_history[-1].timestamp == 123.0


class TestBurn:
    def test_burn_clears_pyre_and_keeps_turn(self):
        pyre = (h(Rank.FOUR), h(Rank.FIVE), h(Rank.SIX), h(Rank.SEVEN), h(Rank.NINE))
        state = make_state([(h(Rank.TEN), h(Rank.ACE)), (h(Rank.JACK),), (h(Rank.QUEEN),)],
                           pyre=pyre, current=0)
        new_state = apply_intent(state, PlayCards("p0", ("hearts-10",)))
        assert new_state.pyre == ()
        assert new_state.discard_pile == pyre + (h(Rank.TEN),)
        assert len(new_state.discard_pile) == 6
        assert new_state.turn_history[-1].type == ActionType.BURN
        assert new_state.current_player_index == 0

    def test_double_burn_triggers_once(self):
        tens = (h(Rank.TEN), Card(Rank.TEN, Suit.CLUBS))
        state = make_state([tens + (h(Rank.ACE),), (h(Rank.JACK),)], pyre=(h(Rank.KING),), current=0)
        new_state = apply_intent(state, PlayCards("p0", ("hearts-10", "clubs-10")))
        assert new_state.discard_pile == (h(Rank.KING),) + tens
        assert new_state.current_player_index == 0
        assert len(new_state.turn_history) == 1


class TestReverse:
    def test_reverse_flips_direction_and_redirects(self):
        state = make_state([(h(Rank.FOUR),), (h(Rank.EIGHT), h(Rank.ACE)), (h(Rank.QUEEN),)],
                           current=1)
        new_state = apply_intent(state, PlayCards("p1", ("hearts-8",)))
        assert new_state.direction == Direction.COUNTER_CLOCKWISE
        assert new_state.current_player_index == 0
        assert new_state.pyre == (h(Rank.EIGHT),)
        assert new_state.turn_history[-1].type == ActionType.REVERSE

    def test_reverse_back_to_clockwise(self):
        state = make_state([(h(Rank.FOUR),), (h(Rank.EIGHT), h(Rank.ACE)), (h(Rank.QUEEN),)],
                           current=1, direction=Direction.COUNTER_CLOCKWISE)
        new_state = apply_intent(state, PlayCards("p1", ("hearts-8",)))
        assert new_state.direction == Direction.CLOCKWISE
        assert new_state.current_player_index == 2

    def test_two_players_reverse_returns_to_player(self):
        state = make_state([(h(Rank.EIGHT), h(Rank.ACE)), (h(Rank.QUEEN),)], current=0)
        new_state = apply_intent(state, PlayCards("p0", ("hearts-8",)))
        assert new_state.current_player_index == 1

    def test_plain_play_keeps_direction(self):
        state = make_state([(h(Rank.NINE), h(Rank.ACE)), (h(Rank.QUEEN),), (h(Rank.FOUR),)],
                           current=0, direction=Direction.COUNTER_CLOCKWISE)
        new_state = apply_intent(state, PlayCards("p0", ("hearts-9",)))
        assert new_state.direction == Direction.COUNTER_CLOCKWISE
        assert new_state.current_player_index == 2


class TestWin:
    def test_last_card_wins(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),), (h(Rank.JACK),)],
                           face_down=[(), (SPARES[1],), (SPARES[2],)], current=0)
        new_state = apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert new_state.phase == GamePhase.FINISHED
        assert new_state.winner == "p0"
        assert new_state.current_player_index == 0

    def test_burn_as_last_card_wins(self):
        state = make_state([(h(Rank.TEN),), (h(Rank.NINE),)], face_down=[(), (SPARES[1],)],
                           pyre=(h(Rank.ACE),))
        new_state = apply_intent(state, PlayCards("p0", ("hearts-10",)))
        assert new_state.winner == "p0"

    def test_finished_is_absorbing(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)], face_down=[(), (SPARES[1],)])
        finished = apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert apply_intent(finished, PickupPyre("p1")) is finished
        assert apply_intent(finished, PlayCards("p1", ("hearts-9",))) is finished
        assert apply_intent(finished, StartGame(("A", "B"))) is finished

    def test_reset_returns_initial_state(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)], face_down=[(), (SPARES[1],)])
        finished = apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert apply_intent(finished, ResetGame()) is INITIAL_STATE

    def test_hand_empty_with_table_cards_does_not_win(self):
        state = make_state([(h(Rank.SEVEN),), (h(Rank.NINE),)])
        new_state = apply_intent(state, PlayCards("p0", ("hearts-7",)))
        assert new_state.winner is None
        assert new_state.phase == GamePhase.PLAYING


class TestPlayFaceUpCards:
    def test_play_face_up_when_hand_empty(self):
        face_up = [(h(Rank.QUEEN), Card(Rank.QUEEN, Suit.CLUBS), h(Rank.FOUR)), ()]
        state = make_state([(), (h(Rank.NINE),)], face_up=face_up, pyre=(h(Rank.JACK),))
        new_state = apply_intent(state, PlayFaceUpCards("p0", ("hearts-Q", "clubs-Q")))
        assert new_state.players[0].face_up_cards == (h(Rank.FOUR),)
        assert new_state.pyre[-2:] == (h(Rank.QUEEN), Card(Rank.QUEEN, Suit.CLUBS))
        assert new_state.current_player_index == 1

    def test_face_up_needs_empty_hand(self):
        face_up = [(h(Rank.QUEEN),), ()]
        state = make_state([(h(Rank.FIVE),), (h(Rank.NINE),)], face_up=face_up)
        assert apply_intent(state, PlayFaceUpCards("p0", ("hearts-Q",))) is state

    def test_face_up_must_beat_pyre(self):
        face_up = [(h(Rank.FOUR),), ()]
        state = make_state([(), (h(Rank.NINE),)], face_up=face_up, pyre=(h(Rank.JACK),))
        assert apply_intent(state, PlayFaceUpCards("p0", ("hearts-4",))) is state

    def test_face_up_last_card_wins(self):
        state = make_state([(), (h(Rank.NINE),)], face_up=[(h(Rank.QUEEN),), ()],
                           face_down=[(), (SPARES[1],)])
        new_state = apply_intent(state, PlayFaceUpCards("p0", ("hearts-Q",)))
        assert new_state.winner == "p0"


class TestFlipFaceDown:
    def test_successful_flip(self):
        face_down = [(h(Rank.ACE), SPARES[0]), (SPARES[1],)]
        state = make_state([(), (h(Rank.NINE),)], face_down=face_down, pyre=(h(Rank.JACK),))
        new_state = apply_intent(state, FlipFaceDown("p0", 0))
        assert new_state.pyre == (h(Rank.JACK), h(Rank.ACE))
        assert new_state.players[0].face_down_cards == (SPARES[0],)
        assert new_state.turn_history[-1].type == ActionType.FLIP_FACE_DOWN
        assert new_state.current_player_index == 1

    def test_failed_flip_picks_up_pyre(self):
        face_down = [(h(Rank.FOUR), SPARES[0]), (SPARES[1],)]
        pyre = (h(Rank.SIX), h(Rank.JACK))
        state = make_state([(), (h(Rank.NINE),)], face_down=face_down, pyre=pyre)
        new_state = apply_intent(state, FlipFaceDown("p0", 0))
        assert new_state.pyre == ()
        assert new_state.players[0].hand == pyre + (h(Rank.FOUR),)
        assert new_state.players[0].face_down_cards == (SPARES[0],)
        assert new_state.turn_history[-1].type == ActionType.PICKUP
        assert new_state.turn_history[-1].cards == pyre + (h(Rank.FOUR),)
        assert new_state.current_player_index == 1
        assert new_state.winner is None

    def test_failed_last_flip_never_wins(self):
        state = make_state([(), (h(Rank.NINE),)], face_down=[(h(Rank.FOUR),), (SPARES[1],)],
                           pyre=(h(Rank.JACK),))
        new_state = apply_intent(state, FlipFaceDown("p0", 0))
        assert new_state.winner is None
        assert new_state.players[0].hand == (h(Rank.JACK), h(Rank.FOUR))

    def test_flip_burn_keeps_turn(self):
        face_down = [(h(Rank.TEN), SPARES[0]), (SPARES[1],)]
        state = make_state([(), (h(Rank.NINE),)], face_down=face_down, pyre=(h(Rank.ACE),))
        new_state = apply_intent(state, FlipFaceDown("p0", 0))
        assert new_state.pyre == ()
        assert new_state.discard_pile == (h(Rank.ACE), h(Rank.TEN))
        assert new_state.current_player_index == 0
        assert new_state.turn_history[-1].type == ActionType.BURN

    def test_flip_reverse_redirects(self):
        face_down = [(SPARES[0],), (h(Rank.EIGHT), SPARES[1]), (SPARES[2],)]
        state = make_state([(h(Rank.FOUR),), (), (h(Rank.QUEEN),)], face_down=face_down, current=1)
        new_state = apply_intent(state, FlipFaceDown("p1", 0))
        assert new_state.direction == Direction.COUNTER_CLOCKWISE
        assert new_state.current_player_index == 0

    def test_last_flip_wins(self):
        state = make_state([(), (h(Rank.NINE),)], face_down=[(h(Rank.ACE),), (SPARES[1],)],
                           pyre=(h(Rank.JACK),))
        new_state = apply_intent(state, FlipFaceDown("p0", 0))
        assert new_state.winner == "p0"

    def test_flip_needs_empty_hand_and_face_up(self):
        state = make_state([(h(Rank.FIVE),), (h(Rank.NINE),)])
        assert apply_intent(state, FlipFaceDown("p0", 0)) is state

        state = make_state([(), (h(Rank.NINE),)], face_up=[(h(Rank.QUEEN),), ()])
        assert apply_intent(state, FlipFaceDown("p0", 0)) is state

    def test_bad_index_is_noop(self):
        state = make_state([(), (h(Rank.NINE),)])
        assert apply_intent(state, FlipFaceDown("p0", 1)) is state
        assert apply_intent(state, FlipFaceDown("p0", -1)) is state
        assert apply_intent(state, FlipFaceDown("p0", "0")) is state
        assert apply_intent(state, FlipFaceDown("p0", True)) is state


class TestPickupPyre:
    def test_pickup(self):
        pyre = (h(Rank.FIVE), h(Rank.KING))
        state = make_state([(h(Rank.FOUR),), (h(Rank.NINE),)], pyre=pyre)
        new_state = apply_intent(state, PickupPyre("p0"))
        assert new_state.pyre == ()
        assert new_state.players[0].hand == (h(Rank.FOUR),) + pyre
        assert new_state.turn_history[-1].type == ActionType.PICKUP
        assert new_state.current_player_index == 1

    def test_pickup_empty_pyre_is_noop(self):
        state = make_state([(h(Rank.FOUR),), (h(Rank.NINE),)])
        assert apply_intent(state, PickupPyre("p0")) is state


class TestWholeGames:
    def _play_random_game(self, seed: int, names: tuple[str, ...]):
        rng = random.Random(seed)
        state = run_discard_phase(apply_intent(INITIAL_STATE, StartGame(names, seed=seed)))
        dealt = Counter(c.id for c in state.all_cards())
        states = [state]

        for _ in range(3000):
            if state.is_game_over:
                break
            player_id = state.current_player_state.id
            intent = rng.choice(generate_legal_intents(state, player_id))
            new_state = apply_intent(state, intent)
            assert new_state is not state, f"Generated intent rejected: {intent}"
            state = new_state
            states.append(state)

        return dealt, states

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_cards_are_conserved(self, seed):
        dealt, states = self._play_random_game(seed, ("A", "B", "C"))
        for state in states:
            assert Counter(c.id for c in state.all_cards()) == dealt

    def test_cards_conserved_with_two_decks(self):
        dealt, states = self._play_random_game(4, ("A", "B", "C", "D", "E"))
        assert sum(dealt.values()) == 104
        for state in states:
            assert Counter(c.id for c in state.all_cards()) == dealt

    @pytest.mark.parametrize("seed", [5, 6])
    def test_winner_iff_finished(self, seed):
        _, states = self._play_random_game(seed, ("A", "B", "C", "D"))
        for state in states:
            assert (state.winner is not None) == (state.phase == GamePhase.FINISHED)

    def test_current_player_never_a_winner(self):
        _, states = self._play_random_game(7, ("A", "B", "C"))
        for state in states:
            if not state.is_game_over:
                assert state.current_player_state.has_cards
