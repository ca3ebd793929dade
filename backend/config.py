import os


def _origins(raw):
    raw = (raw or '*').strip()
    if raw == '*':
        return '*'
    return [o.strip().rstrip('/') for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Snapshot store credentials; the server refuses to start without them
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = int(os.environ.get('PORT', '4000'))
    ALLOWED_ORIGINS = _origins(os.environ.get('ALLOWED_ORIGINS'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # 0 uses the standard table (2p: 7, 3p: 5, 4p: 4)
    TOKENS_TO_WIN = int(os.environ.get('TOKENS_TO_WIN', '0'))
    # Idle sessions are persisted and dropped from memory after this long
    SESSION_IDLE_TTL_SEC = int(os.environ.get('SESSION_IDLE_TTL_SEC', '3600'))
    # 0 disables the eviction sweeper
    SESSION_SWEEP_INTERVAL_SEC = int(os.environ.get('SESSION_SWEEP_INTERVAL_SEC', '60'))
