from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


class RoomsState:
    """Per-app room wiring, stored in ``app.extensions['rooms']``."""

    def __init__(self, registry, machine, history):
        self.registry = registry
        self.machine = machine
        self.history = history
        self.sweeper_started = False


def create_app(config_class=Config, clock=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    # Module loggers under onetoten.* propagate to the app logger
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from onetoten.main import main
    flask_app.register_blueprint(main)

    from onetoten.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api')

    # Room protocol: one registry and state machine per app instance
    from onetoten.services.history import HistoryStore
    from onetoten.services.rooms import RoomRegistry, RoomStateMachine
    from onetoten.services.rooms.scheduler import schedule_room_cleanup
    from onetoten.socketio_events import push, register_socketio_handlers

    registry = RoomRegistry.from_config(flask_app.config, clock=clock)
    history = HistoryStore(flask_app)

    def _defer(fn, *args):
        if flask_app.config.get('TESTING'):
            fn(*args)
        else:
            socketio.start_background_task(fn, *args)

    machine = RoomStateMachine(
        registry,
        history=history,
        emit=push,
        defer=_defer,
        on_completed=lambda code, deadline: schedule_room_cleanup(flask_app, code, deadline),
        max_number_ceiling=flask_app.config.get('MAX_NUMBER_CEILING', 1000),
        challenge_max_length=flask_app.config.get('CHALLENGE_MAX_LENGTH', 200),
        name_max_length=flask_app.config.get('NAME_MAX_LENGTH', 40),
    )
    flask_app.extensions['rooms'] = RoomsState(registry, machine, history)
    register_socketio_handlers()

    from onetoten import models  # noqa: F401
    if flask_app.config.get('AUTO_CREATE_TABLES', True):
        with flask_app.app_context():
            db.create_all()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the game history table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Game history has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
