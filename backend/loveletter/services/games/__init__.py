"""Game domain rules: deck, card effects and round flow.

Pure logic over ``GameState``; imported by the session layer, which owns
locking, persistence and broadcasting.
"""
from .cards import Card, CardKind, GameState, Player
from .deck import create_deck, full_deck
from .effects import PlayResult, PrivateReveal, resolve_play, validate_play
from .rounds import advance_turn, start_round, tokens_to_win
