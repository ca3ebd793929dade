"""Card effect resolution.

A play is checked in full by :func:`validate_play` before anything is
touched. Only then does :func:`resolve_play` take the card out of the
player's hand and apply its effect. A rejected play raises
:class:`InvalidAction` and leaves the state exactly as it was.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from loveletter.exceptions import InvalidAction
from .cards import Card, CardKind, GameState, Player, TARGETED_KINDS


@dataclass
class PrivateReveal:
    """Card shown by a Priest, meant only for ``viewer_id``."""
    viewer_id: str
    target_id: str
    card: Card

    def to_dict(self):
        return {'targetId': self.target_id, 'card': self.card.to_dict()}


@dataclass
class PlayResult:
    card: Card
    reveal: Optional[PrivateReveal] = None


@dataclass
class _Play:
    player: Player
    card_index: int
    card: Card
    target: Optional[Player]
    guess: Optional[CardKind]


def legal_targets(state: GameState, player: Player) -> List[Player]:
    """Opponents that can currently be chosen by a targeted card."""
    return [p for p in state.players if p is not player and not p.eliminated and not p.protected]


def validate_play(state: GameState, player_id: str, card_index, target_id: Optional[str] = None,
                  guess: Optional[str] = None) -> _Play:
    if state.finished:
        raise InvalidAction("The match is over.")
    if not state.started:
        raise InvalidAction("The game has not started.")
    player = state.player_by_id(player_id)
    if player is None:
        raise InvalidAction("Player not in game.")
    if player is not state.current_player:
        raise InvalidAction("Not your turn.")
    if player.eliminated:
        raise InvalidAction("You are eliminated.")
    if isinstance(card_index, bool) or not isinstance(card_index, int) \
            or card_index < 0 or card_index >= len(player.hand):
        raise InvalidAction("Invalid card index.")

    card = player.hand[card_index]
    others = [c for i, c in enumerate(player.hand) if i != card_index]
    if card.kind in (CardKind.KING, CardKind.PRINCE) and any(c.kind is CardKind.COUNTESS for c in others):
        raise InvalidAction("Rule: If you hold the Countess with King/Prince, you must discard the Countess.")

    if card.kind not in TARGETED_KINDS:
        return _Play(player, card_index, card, None, None)

    target = None
    if target_id:
        target = state.player_by_id(target_id)
        if target is None:
            raise InvalidAction("Target not found.")
        if target.eliminated:
            raise InvalidAction(f"{target.name} is out of the round.")
        if target.protected:
            raise InvalidAction(f"{target.name} is protected by Handmaid.")
        if target is player and card.kind is not CardKind.PRINCE:
            raise InvalidAction(f"{card.name} cannot target yourself.")
    elif card.kind is CardKind.PRINCE:
        raise InvalidAction("Prince requires a target (can be yourself).")
    elif legal_targets(state, player):
        raise InvalidAction(f"{card.name} requires a target.")

    guess_kind = None
    if card.kind is CardKind.GUARD and target is not None:
        if not guess:
            raise InvalidAction("Invalid guess for Guard.")
        try:
            guess_kind = CardKind.from_label(guess)
        except ValueError:
            raise InvalidAction("Invalid guess for Guard.")
        if guess_kind is CardKind.GUARD:
            raise InvalidAction("Invalid guess for Guard.")

    return _Play(player, card_index, card, target, guess_kind)


def resolve_play(state: GameState, player_id: str, card_index, target_id: Optional[str] = None,
                 guess: Optional[str] = None) -> PlayResult:
    """Validate, discard and apply one card. Does not advance the turn."""
    play = validate_play(state, player_id, card_index, target_id, guess)
    player = play.player
    player.hand.pop(play.card_index)
    player.discards.append(play.card)
    state.log.append(f"{player.name} played {play.card.name}.")

    result = PlayResult(card=play.card)
    if play.card.kind in TARGETED_KINDS and play.target is None:
        state.log.append(f"Every opponent is protected; {play.card.name} has no effect.")
        return result
    _EFFECTS[play.card.kind](state, play, result)
    return result


def _guard(state: GameState, play: _Play, result: PlayResult) -> None:
    player, target, guess = play.player, play.target, play.guess
    if target.hand and target.hand[0].kind is guess:
        target.eliminate()
        state.log.append(f"{player.name} guessed {guess.label} correctly. {target.name} is eliminated.")
    else:
        state.log.append(f"{player.name} guessed {guess.label} for {target.name}. Wrong guess.")


def _priest(state: GameState, play: _Play, result: PlayResult) -> None:
    player, target = play.player, play.target
    if target.hand:
        result.reveal = PrivateReveal(viewer_id=player.id, target_id=target.id, card=target.hand[0])
    state.log.append(f"{player.name} looked at {target.name}'s hand.")


def _baron(state: GameState, play: _Play, result: PlayResult) -> None:
    player, target = play.player, play.target
    mine, theirs = player.hand[0], target.hand[0]
    if mine.value > theirs.value:
        target.eliminate()
        state.log.append(f"{player.name} ({mine.name}) beat {target.name} ({theirs.name}).")
    elif mine.value < theirs.value:
        player.eliminate()
        state.log.append(f"{target.name} ({theirs.name}) beat {player.name} ({mine.name}).")
    else:
        state.log.append(f"{player.name} and {target.name} tied with {mine.name}.")


def _handmaid(state: GameState, play: _Play, result: PlayResult) -> None:
    play.player.protected = True
    state.log.append(f"{play.player.name} is protected until their next turn.")


def _prince(state: GameState, play: _Play, result: PlayResult) -> None:
    target = play.target
    discarded = target.hand.pop()
    target.discards.append(discarded)
    state.log.append(f"{target.name} discarded {discarded.name} due to Prince.")
    if discarded.kind is CardKind.PRINCESS:
        target.eliminate()
        state.log.append(f"{target.name} discarded the Princess and was eliminated.")
    elif state.deck:
        target.hand = [state.deck.pop()]
    else:
        target.hand = []


def _king(state: GameState, play: _Play, result: PlayResult) -> None:
    player, target = play.player, play.target
    player.hand, target.hand = target.hand, player.hand
    state.log.append(f"{player.name} swapped hands with {target.name}.")


def _countess(state: GameState, play: _Play, result: PlayResult) -> None:
    state.log.append(f"{play.player.name} discarded the Countess.")


def _princess(state: GameState, play: _Play, result: PlayResult) -> None:
    play.player.eliminate()
    state.log.append(f"{play.player.name} discarded the Princess and was eliminated.")


_EFFECTS: Dict[CardKind, Callable[[GameState, _Play, PlayResult], None]] = {
    CardKind.GUARD: _guard,
    CardKind.PRIEST: _priest,
    CardKind.BARON: _baron,
    CardKind.HANDMAID: _handmaid,
    CardKind.PRINCE: _prince,
    CardKind.KING: _king,
    CardKind.COUNTESS: _countess,
    CardKind.PRINCESS: _princess,
}

_missing = set(CardKind) - set(_EFFECTS)
if _missing:
    raise RuntimeError(f"No effect registered for: {sorted(k.label for k in _missing)}")
