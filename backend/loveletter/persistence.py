"""Durable snapshots of game state, keyed by game code.

The in-memory session is authoritative; these rows exist so a game can be
rehydrated after its session was evicted or the process restarted.
"""
import json
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from loveletter import db
from loveletter.exceptions import PersistenceFailure
from loveletter.models import GameSnapshot
from loveletter.services.games import GameState


class SnapshotStore:

    def upsert(self, code: str, state: GameState) -> None:
        """Insert or replace the snapshot for ``code`` in one transaction."""
        try:
            payload = json.dumps(state.to_dict())
            row = GameSnapshot.query.filter_by(code=code).first()
            if row is None:
                row = GameSnapshot(code=code, state=payload)
            else:
                row.state = payload
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[persist-fail] op=upsert code={code} error={exc}")
            raise PersistenceFailure(f"Could not save game {code}") from exc

    def fetch(self, code: str) -> Optional[GameState]:
        try:
            row = GameSnapshot.query.filter_by(code=code).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[persist-fail] op=fetch code={code} error={exc}")
            raise PersistenceFailure(f"Could not load game {code}") from exc
        if row is None:
            return None
        try:
            return GameState.from_dict(json.loads(row.state))
        except (ValueError, KeyError, TypeError) as exc:
            current_app.logger.error(f"[persist-fail] op=decode code={code} error={exc}")
            raise PersistenceFailure(f"Snapshot for game {code} is unreadable") from exc

    def delete(self, code: str) -> None:
        try:
            GameSnapshot.query.filter_by(code=code).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[persist-fail] op=delete code={code} error={exc}")
            raise PersistenceFailure(f"Could not delete game {code}") from exc

    def exists(self, code: str) -> bool:
        try:
            return GameSnapshot.query.filter_by(code=code).first() is not None
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceFailure(f"Could not look up game {code}") from exc
