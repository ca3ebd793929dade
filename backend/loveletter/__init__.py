from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config
from loveletter.exceptions import StartupConfigError

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    if not flask_app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise StartupConfigError("Missing DATABASE_URL; refusing to start without a snapshot store.")

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from loveletter.main import main
    flask_app.register_blueprint(main)

    # Ensure the snapshot table is registered on the metadata
    import loveletter.models  # noqa: F401

    from loveletter.sessions import registry, run_idle_sweeper
    registry.init_app(flask_app)

    from loveletter.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    if not flask_app.config.get('TESTING') and int(flask_app.config.get('SESSION_SWEEP_INTERVAL_SEC', 0)) > 0:
        socketio.start_background_task(run_idle_sweeper, flask_app, socketio)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the snapshot table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
