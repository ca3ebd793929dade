from collections import Counter

import pytest

from loveletter.exceptions import InvalidAction
from loveletter.services.games import CardKind, advance_turn, full_deck, resolve_play, validate_play

G, PR, BA, HM, PN, KI, CO, PS = (
    CardKind.GUARD, CardKind.PRIEST, CardKind.BARON, CardKind.HANDMAID,
    CardKind.PRINCE, CardKind.KING, CardKind.COUNTESS, CardKind.PRINCESS,
)


def _conserved(state):
    return Counter(c.kind for c in state.all_cards()) == Counter(c.kind for c in full_deck())


def _kinds(player):
    return [c.kind for c in player.hand]


def _assert_rejected(state, *args, **kwargs):
    before = state.to_dict()
    with pytest.raises(InvalidAction):
        resolve_play(state, *args, **kwargs)
    assert state.to_dict() == before


# ---- legality ----

def test_rejects_when_not_your_turn(make_state):
    state = make_state([[G, PR], [BA]])
    _assert_rejected(state, 'b', 0, target_id='a', guess='Priest')


def test_rejects_unknown_player_and_bad_index(make_state):
    state = make_state([[G, PR], [BA]])
    _assert_rejected(state, 'zz', 0)
    _assert_rejected(state, 'a', 2)
    _assert_rejected(state, 'a', -1)
    _assert_rejected(state, 'a', '0')


def test_rejects_before_game_started(make_state):
    state = make_state([[G, PR], [BA]])
    state.started = False
    _assert_rejected(state, 'a', 1, target_id='b')


def test_guard_guessing_guard_is_rejected(make_state):
    state = make_state([[G, PR], [G]])
    _assert_rejected(state, 'a', 0, target_id='b', guess='Guard')


def test_guard_requires_valid_guess(make_state):
    state = make_state([[G, PR], [BA]])
    _assert_rejected(state, 'a', 0, target_id='b')
    _assert_rejected(state, 'a', 0, target_id='b', guess='Jester')


def test_targeted_card_requires_target(make_state):
    state = make_state([[G, PR], [BA]])
    for index in (0, 1):
        _assert_rejected(state, 'a', index)


def test_cannot_target_protected_player(make_state):
    state = make_state([[G, BA], [PR], [HM]], b={'protected': True})
    _assert_rejected(state, 'a', 0, target_id='b', guess='Priest')
    _assert_rejected(state, 'a', 1, target_id='b')


def test_cannot_target_eliminated_or_missing_player(make_state):
    state = make_state([[G, PR], [BA], [HM]], b={'eliminated': True})
    _assert_rejected(state, 'a', 1, target_id='b')
    _assert_rejected(state, 'a', 1, target_id='nobody')


def test_only_prince_may_target_self(make_state):
    state = make_state([[KI, PN], [BA]])
    _assert_rejected(state, 'a', 0, target_id='a')
    resolve_play(state, 'a', 1, target_id='a')
    assert state.players[0].discards[-1].kind is KI


@pytest.mark.parametrize('blocked', [KI, PN])
def test_countess_forces_discard(make_state, blocked):
    state = make_state([[CO, blocked], [BA]])
    _assert_rejected(state, 'a', 1, target_id='b')

    resolve_play(state, 'a', 0)
    assert _kinds(state.players[0]) == [blocked]
    assert "A discarded the Countess." in state.log


def test_countess_without_king_or_prince_is_free(make_state):
    state = make_state([[CO, BA], [G]])
    resolve_play(state, 'a', 1, target_id='b')
    assert state.players[1].eliminated


def test_all_opponents_protected_allows_untargeted_play(make_state):
    state = make_state([[G, BA], [PR], [HM]], b={'protected': True}, c={'protected': True})
    resolve_play(state, 'a', 0)
    assert _kinds(state.players[0]) == [BA]
    assert not any(p.eliminated for p in state.players)
    assert state.log[-1] == "Every opponent is protected; Guard has no effect."


def test_prince_still_needs_target_when_others_protected(make_state):
    state = make_state([[PN, G], [PR]], b={'protected': True})
    _assert_rejected(state, 'a', 0)


def test_validate_play_does_not_touch_hand(make_state):
    state = make_state([[G, PR], [BA]])
    validate_play(state, 'a', 0, target_id='b', guess='Baron')
    assert _kinds(state.players[0]) == [G, PR]


# ---- effects ----

def test_guard_correct_guess_eliminates(make_state):
    state = make_state([[G, PR], [BA]])
    resolve_play(state, 'a', 0, target_id='b', guess='Baron')
    target = state.players[1]
    assert target.eliminated
    assert target.hand == []
    assert target.discards[-1].kind is BA
    assert "A guessed Baron correctly. B is eliminated." in state.log
    assert _conserved(state)


def test_guard_wrong_guess_scenario(make_state):
    state = make_state([[G, HM], [BA], [PR], [KI]])
    b_before = _kinds(state.players[1])

    resolve_play(state, 'a', 0, target_id='b', guess='Priest')
    assert not state.players[1].eliminated
    assert state.log[-1] == "A guessed Priest for B. Wrong guess."

    advance_turn(state)
    assert state.current_player_index == 1
    assert len(state.players[1].hand) == 2
    assert _kinds(state.players[1])[0] == b_before[0]
    assert _conserved(state)


def test_priest_reveals_privately(make_state):
    state = make_state([[PR, G], [KI]])
    result = resolve_play(state, 'a', 0, target_id='b')
    assert result.reveal.viewer_id == 'a'
    assert result.reveal.target_id == 'b'
    assert result.reveal.card.kind is KI
    assert result.reveal.to_dict() == {'targetId': 'b', 'card': {'name': 'King', 'value': 6}}
    assert state.log[-1] == "A looked at B's hand."


def test_baron_lower_hand_is_eliminated(make_state):
    state = make_state([[BA, PS], [PN]])
    resolve_play(state, 'a', 0, target_id='b')
    assert state.players[1].eliminated
    assert not state.players[0].eliminated

    state = make_state([[BA, G], [PN]])
    resolve_play(state, 'a', 0, target_id='b')
    assert state.players[0].eliminated
    assert not state.players[1].eliminated
    assert _conserved(state)


def test_baron_equal_hands_no_effect(make_state):
    state = make_state([[BA, G], [G]])
    resolve_play(state, 'a', 0, target_id='b')
    assert not any(p.eliminated for p in state.players)
    assert state.log[-1] == "A and B tied with Guard."


def test_handmaid_protects_self(make_state):
    state = make_state([[HM, G], [BA]])
    result = resolve_play(state, 'a', 0)
    assert result.reveal is None
    assert state.players[0].protected


def test_prince_on_opponent_draws_replacement(make_state):
    state = make_state([[PN, G], [BA]])
    top = state.deck[-1]
    resolve_play(state, 'a', 0, target_id='b')
    assert state.players[1].hand == [top]
    assert state.players[1].discards[-1].kind is BA
    assert _conserved(state)


def test_prince_on_self_discards_remaining_card(make_state):
    state = make_state([[PN, G], [BA]])
    top = state.deck[-1]
    resolve_play(state, 'a', 0, target_id='a')
    assert state.players[0].hand == [top]
    assert [c.kind for c in state.players[0].discards] == [PN, G]


def test_prince_forcing_princess_discard_eliminates(make_state):
    state = make_state([[PN, G], [PS]])
    resolve_play(state, 'a', 0, target_id='b')
    assert state.players[1].eliminated
    assert "B discarded the Princess and was eliminated." in state.log
    assert _conserved(state)


def test_prince_with_empty_deck_leaves_empty_hand(make_state):
    state = make_state([[PN, G], [BA]], deck=[])
    resolve_play(state, 'a', 0, target_id='b')
    assert state.players[1].hand == []
    assert not state.players[1].eliminated


def test_king_swaps_hands(make_state):
    state = make_state([[KI, G], [PS]])
    resolve_play(state, 'a', 0, target_id='b')
    assert _kinds(state.players[0]) == [PS]
    assert _kinds(state.players[1]) == [G]
    assert _conserved(state)


def test_princess_discard_eliminates_self(make_state):
    state = make_state([[PS, G], [BA]])
    resolve_play(state, 'a', 0)
    assert state.players[0].eliminated
    assert state.log[-1] == "A discarded the Princess and was eliminated."


def test_elimination_ends_round_immediately(make_state):
    state = make_state([[G, PR], [BA], [HM]], c={'eliminated': True})
    resolve_play(state, 'a', 0, target_id='b', guess='Baron')
    winners = advance_turn(state)
    assert [w.id for w in winners] == ['a']
    assert state.players[0].tokens == 1
    assert state.round == 2


def test_two_player_countess_scenario(make_state):
    state = make_state([[CO, PN], [G]])
    _assert_rejected(state, 'a', 1, target_id='b')

    resolve_play(state, 'a', 0)
    advance_turn(state)
    assert state.current_player_index == 1
    assert len(state.players[1].hand) == 2
    assert _conserved(state)


def test_every_card_kind_has_an_effect():
    from loveletter.services.games.effects import _EFFECTS

    assert set(_EFFECTS) == set(CardKind)
