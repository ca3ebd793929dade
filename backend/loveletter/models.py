from datetime import datetime, timezone

from loveletter import db


def _utcnow():
    return datetime.now(timezone.utc)


class GameSnapshot(db.Model):
    """Latest serialized ``GameState`` for one game code."""
    __tablename__ = 'game_snapshot'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False, index=True)
    state = db.Column(db.Text, nullable=False)  # JSON-encoded GameState
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
