"""Round lifecycle: dealing, turn advancement, round and match scoring."""
from typing import List, Optional

from .cards import Card, GameState, Player
from .deck import create_deck

# Tokens needed to win the match, by player count
STANDARD_TOKENS_TO_WIN = {2: 7, 3: 5, 4: 4}


def tokens_to_win(player_count: int, override: Optional[int] = None) -> int:
    if override:
        return int(override)
    return STANDARD_TOKENS_TO_WIN.get(player_count, 4)


def start_round(state: GameState, deck: Optional[List[Card]] = None) -> None:
    """Deal a fresh round.

    Burns one card face down, deals one card to each player in turn order,
    resets the round-scoped flags and gives the first player a second card.
    """
    state.deck = list(deck) if deck is not None else create_deck()
    state.burn_card = state.deck.pop() if state.deck else None
    for p in state.players:
        p.hand = [state.deck.pop()]
        p.discards = []
        p.eliminated = False
        p.protected = False
    state.current_player_index = 0
    state.round += 1
    state.log = []
    if state.deck:
        state.players[0].hand.append(state.deck.pop())


def advance_turn(state: GameState, target_tokens: Optional[int] = None) -> List[Player]:
    """Move the game on after a successful play.

    Returns the round winners when the play ended the round, otherwise an
    empty list.
    """
    active = state.active_players()
    if len(active) <= 1:
        return _finish_round(state, active, "last player standing", target_tokens)
    if not state.deck:
        return _finish_round(state, _best_hands(active), "highest card when deck empty", target_tokens)

    idx = state.current_player_index
    while True:
        idx = (idx + 1) % len(state.players)
        if not state.players[idx].eliminated:
            break
    state.current_player_index = idx
    current = state.players[idx]
    current.protected = False
    current.hand.append(state.deck.pop())
    return []


def _best_hands(active: List[Player]) -> List[Player]:
    """Highest hand wins; ties go to the highest discard total, then share."""
    contenders = [p for p in active if p.hand]
    if not contenders:
        return []
    best = max(p.hand[0].value for p in contenders)
    tied = [p for p in contenders if p.hand[0].value == best]
    if len(tied) > 1:
        best_discards = max(_discard_total(p) for p in tied)
        tied = [p for p in tied if _discard_total(p) == best_discards]
    return tied


def _discard_total(player: Player) -> int:
    return sum(c.value for c in player.discards)


def _finish_round(state: GameState, winners: List[Player], reason: str,
                  target_tokens: Optional[int]) -> List[Player]:
    messages = []
    for w in winners:
        w.tokens += 1
        messages.append(f"{w.name} won the round ({reason}).")
    if not winners:
        messages.append("No one won the round.")
    state.log.extend(messages)

    needed = tokens_to_win(len(state.players), target_tokens)
    champions = [p for p in state.players if p.tokens >= needed]
    if champions:
        champion = max(champions, key=lambda p: p.tokens)
        state.finished = True
        state.winner_id = champion.id
        state.log.append(f"{champion.name} won the match with {champion.tokens} tokens.")
        return winners

    start_round(state)
    # start_round clears the log; keep the result visible in the new round
    state.log.extend(messages)
    return winners
