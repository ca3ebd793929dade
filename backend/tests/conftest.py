import os
import sys
from collections import Counter

import pytest

# Ensure the backend root (containing the `loveletter` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from loveletter import create_app, db, socketio
from loveletter.services.games import Card, CardKind, GameState, Player, full_deck


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = '*'
    MIN_PLAYERS = 2
    MAX_PLAYERS = 4
    TOKENS_TO_WIN = 0
    SESSION_IDLE_TTL_SEC = 3600
    SESSION_SWEEP_INTERVAL_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


def build_deck(*draws):
    """A full 16-card deck whose pops return ``draws`` first, in order.

    Cards not named sit underneath, so the multiset is always complete.
    """
    remaining = Counter(c.kind for c in full_deck())
    for kind in draws:
        remaining[kind] -= 1
        assert remaining[kind] >= 0, f"too many {kind.label} cards"
    bottom = [Card(kind) for kind in CardKind for _ in range(remaining[kind])]
    return bottom + [Card(kind) for kind in reversed(draws)]


@pytest.fixture()
def rigged_deck():
    return build_deck


@pytest.fixture()
def make_state():
    """Started game with hands set directly; the deck keeps the rest of the 16 cards."""

    def _make(hands, current=0, deck=None, burn=CardKind.GUARD, **flags):
        players = []
        used = Counter()
        for i, kinds in enumerate(hands):
            pid = chr(ord('a') + i)
            players.append(Player(id=pid, name=pid.upper(), hand=[Card(k) for k in kinds]))
            used.update(kinds)
        if burn is not None:
            used[burn] += 1
        if deck is None:
            left = Counter(c.kind for c in full_deck()) - used
            deck = [Card(kind) for kind in CardKind for _ in range(left[kind])]
        else:
            deck = [Card(k) for k in deck]
        state = GameState(
            code='TEST',
            players=players,
            deck=deck,
            burn_card=Card(burn) if burn is not None else None,
            current_player_index=current,
            started=True,
            round=1,
        )
        for pid, attrs in flags.items():
            p = state.player_by_id(pid)
            for key, value in attrs.items():
                setattr(p, key, value)
        return state

    return _make
