"""Per-code game sessions and the registry that resolves them.

Each ``GameSession`` applies one action at a time, in arrival order. Actions
for different codes never wait on each other. After every successful action
the session snapshots itself through the ``SnapshotStore``; a failed write is
logged and play continues from memory.
"""
import copy
import logging
import random
import string
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from loveletter.exceptions import GameNotFound, InvalidAction, PersistenceFailure
from loveletter.services.games import (
    Card,
    GameState,
    Player,
    PrivateReveal,
    advance_turn,
    resolve_play,
    start_round,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_game_code(length=4):
    return ''.join(random.choices(CODE_ALPHABET, k=length))


class _Turnstile:
    """Mutex that admits waiters strictly in the order they arrived."""

    def __init__(self):
        self._cond = threading.Condition()
        self._next_ticket = 0
        self._serving = 0

    def __enter__(self):
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._serving:
                self._cond.wait()
        return self

    def __exit__(self, *exc_info):
        with self._cond:
            self._serving += 1
            self._cond.notify_all()
        return False


@dataclass
class Outcome:
    """What a successful action produced, captured before the lock is released."""
    view: Dict
    changed: bool = True
    reveal: Optional[PrivateReveal] = None
    round_winners: List[Player] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return bool(self.view.get('finished'))


class GameSession:

    def __init__(self, code: str, state: Optional[GameState] = None, store=None,
                 min_players: int = 2, max_players: int = 4, tokens_to_win: int = 0):
        self.code = code
        self.state = state or GameState(code=code)
        self.min_players = min_players
        self.max_players = max_players
        self.tokens_to_win = tokens_to_win
        self.closed = False
        self.last_active = time.monotonic()
        self._store = store
        self._turnstile = _Turnstile()
        self._commit_hooks = []

    @contextmanager
    def _action(self, persist=True):
        """Run one action exclusively; roll the state back if it raises.

        Callbacks queued with ``_on_commit`` run after the snapshot, still
        inside the serialized section, so broadcasts leave in action order.
        """
        with self._turnstile:
            if self.closed:
                raise GameNotFound(self.code)
            before = copy.deepcopy(self.state)
            self._commit_hooks = []
            try:
                yield self.state
            except Exception:
                self.state = before
                self._commit_hooks = []
                raise
            finally:
                self.last_active = time.monotonic()
            if persist:
                self._persist()
            hooks, self._commit_hooks = self._commit_hooks, []
            for hook in hooks:
                hook()

    def _on_commit(self, notify, payload) -> None:
        if notify is not None:
            self._commit_hooks.append(lambda: notify(payload))

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.upsert(self.code, self.state)
        except PersistenceFailure as exc:
            logger.warning(f"[persist-skip] code={self.code} continuing in memory: {exc}")

    def view(self) -> Dict:
        with self._turnstile:
            return self.state.to_dict(public=True)

    def add_player(self, player_id: str, name, notify: Optional[Callable[[Outcome], None]] = None) -> Outcome:
        if name is not None and not isinstance(name, str):
            raise InvalidAction("Player name must be text.")
        name = (name or '').strip()
        with self._action() as state:
            if state.player_by_id(player_id) is not None:
                outcome = Outcome(view=state.to_dict(public=True), changed=False)
                self._on_commit(notify, outcome)
                return outcome
            if state.started:
                raise InvalidAction("Game already started.")
            if not name:
                raise InvalidAction("Player name is required.")
            if state.player_by_name(name) is not None:
                raise InvalidAction(f"The name {name} is already taken.")
            if len(state.players) >= self.max_players:
                raise InvalidAction("Game is full.")
            state.players.append(Player(id=player_id, name=name))
            outcome = Outcome(view=state.to_dict(public=True))
            self._on_commit(notify, outcome)
            return outcome

    def send_chat(self, player_id: str, message, notify: Optional[Callable[[Dict], None]] = None) -> Optional[Dict]:
        """Append a chat line; returns None when the sender is not a player."""
        if not isinstance(message, str):
            raise InvalidAction("Chat message must be text.")
        with self._action() as state:
            sender = state.player_by_id(player_id)
            if sender is None:
                return None
            entry = {'sender': sender.name, 'message': message, 'timestamp': int(time.time() * 1000)}
            state.chat.append(entry)
            self._on_commit(notify, entry)
            return entry

    def start(self, deck: Optional[List[Card]] = None,
              notify: Optional[Callable[[Outcome], None]] = None) -> Outcome:
        with self._action() as state:
            if state.started:
                return Outcome(view=state.to_dict(public=True), changed=False)
            if len(state.players) < self.min_players:
                raise InvalidAction(f"Need at least {self.min_players} players to start.")
            state.started = True
            start_round(state, deck)
            logger.info(f"[start] code={self.code} players={len(state.players)}")
            outcome = Outcome(view=state.to_dict(public=True))
            self._on_commit(notify, outcome)
            return outcome

    def play_card(self, player_id: str, card_index, target_id: Optional[str] = None,
                  guessed_card: Optional[str] = None,
                  notify: Optional[Callable[[Outcome], None]] = None) -> Outcome:
        with self._action() as state:
            result = resolve_play(state, player_id, card_index, target_id, guessed_card)
            winners = advance_turn(state, self.tokens_to_win)
            if winners:
                logger.info(f"[round-end] code={self.code} winners={[w.name for w in winners]} round={state.round}")
            outcome = Outcome(view=state.to_dict(public=True), reveal=result.reveal, round_winners=winners)
            self._on_commit(notify, outcome)
            return outcome

    def flush(self) -> None:
        """Persist the current state outside of any action."""
        with self._turnstile:
            self._persist()

    def close(self, purge: bool = False, persist: bool = True) -> None:
        """Refuse further actions once in-flight ones are done.

        The final state is persisted, or with ``purge`` the snapshot is
        deleted instead.
        """
        with self._turnstile:
            if purge:
                self._delete_snapshot()
            elif persist and not self.closed:
                self._persist()
            self.closed = True

    def _delete_snapshot(self) -> None:
        if self._store is None:
            return
        try:
            self._store.delete(self.code)
        except PersistenceFailure as exc:
            logger.warning(f"[purge-fail] code={self.code}: {exc}")


class SessionRegistry:
    """Maps game codes to resident sessions."""

    def __init__(self, store=None):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()
        self._store = store
        self.idle_ttl = 3600
        self.min_players = 2
        self.max_players = 4
        self.tokens_to_win = 0

    def init_app(self, app, store=None) -> None:
        from loveletter.persistence import SnapshotStore

        self._store = store if store is not None else SnapshotStore()
        self.idle_ttl = int(app.config.get('SESSION_IDLE_TTL_SEC', 3600))
        self.min_players = int(app.config.get('MIN_PLAYERS', 2))
        self.max_players = int(app.config.get('MAX_PLAYERS', 4))
        self.tokens_to_win = int(app.config.get('TOKENS_TO_WIN', 0))
        with self._lock:
            self._sessions.clear()
        app.extensions['loveletter_sessions'] = self

    def _new_session(self, code: str, state: Optional[GameState] = None) -> GameSession:
        return GameSession(
            code,
            state=state,
            store=self._store,
            min_players=self.min_players,
            max_players=self.max_players,
            tokens_to_win=self.tokens_to_win,
        )

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, code: str) -> Optional[GameSession]:
        """Resident session for ``code``, rehydrated from its snapshot if needed."""
        code = normalize_code(code)
        if not code:
            return None
        session = self._sessions.get(code)
        if session is not None:
            return session
        if self._store is None:
            return None
        try:
            state = self._store.fetch(code)
        except PersistenceFailure as exc:
            logger.warning(f"[rehydrate-fail] code={code}: {exc}")
            return None
        if state is None:
            return None
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                session = self._new_session(code, state)
                self._sessions[code] = session
                logger.info(f"[rehydrate] code={code} round={state.round}")
            return session

    def require(self, code: str) -> GameSession:
        session = self.get(code)
        if session is None:
            raise GameNotFound(code)
        return session

    def get_or_create(self, code: str) -> GameSession:
        session = self.get(code)
        if session is not None:
            return session
        code = normalize_code(code)
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                session = self._new_session(code)
                self._sessions[code] = session
            return session

    def create(self) -> GameSession:
        """Open a session under a fresh code unused in memory and in the store."""
        while True:
            code = generate_game_code()
            if code in self._sessions or self._code_persisted(code):
                logger.warning(f"Game code collision detected, regenerating: {code}")
                continue
            with self._lock:
                if code in self._sessions:
                    continue
                session = self._new_session(code)
                self._sessions[code] = session
                return session

    def _code_persisted(self, code: str) -> bool:
        if self._store is None:
            return False
        try:
            return self._store.exists(code)
        except PersistenceFailure:
            return False

    def remove(self, code: str, purge: bool = False) -> Optional[GameSession]:
        """Drop a session from memory; ``purge`` also deletes its snapshot."""
        code = normalize_code(code)
        with self._lock:
            session = self._sessions.pop(code, None)
        if session is not None:
            session.close(purge=purge, persist=False)
        elif purge and self._store is not None:
            try:
                self._store.delete(code)
            except PersistenceFailure as exc:
                logger.warning(f"[purge-fail] code={code}: {exc}")
        return session

    def evict_idle(self, ttl: Optional[float] = None, now: Optional[float] = None) -> List[str]:
        """Persist and drop every session idle for longer than ``ttl`` seconds."""
        ttl = self.idle_ttl if ttl is None else ttl
        now = time.monotonic() if now is None else now
        evicted = []
        for code, session in list(self._sessions.items()):
            if now - session.last_active <= ttl:
                continue
            session.close()
            with self._lock:
                if self._sessions.get(code) is session:
                    del self._sessions[code]
                    evicted.append(code)
        if evicted:
            logger.info(f"[evict] codes={evicted}")
        return evicted


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


registry = SessionRegistry()


def run_idle_sweeper(app, socketio) -> None:
    """Background loop evicting idle sessions; started by ``create_app``."""
    interval = int(app.config.get('SESSION_SWEEP_INTERVAL_SEC', 60))
    while True:
        socketio.sleep(interval)
        with app.app_context():
            try:
                registry.evict_idle()
            except Exception as exc:
                app.logger.error(f"[sweeper] eviction pass failed: {exc}")
