from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One hub per app: owns every room and session for the process lifetime
    from gifleague.hub import GameHub
    flask_app.extensions['gifleague'] = GameHub(flask_app.config, logger=flask_app.logger)

    # Import and register blueprints here
    from gifleague.main import main
    flask_app.register_blueprint(main)

    from gifleague.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from gifleague.socketio_events import register_socketio_handlers
    register_socketio_handlers(flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    from gifleague.services.games.scheduler import start_sweeper, sweep_once
    start_sweeper(flask_app)

    @click.command('sweep')
    def sweep_command():
        """Evicts stale sessions and idle rooms once."""
        evicted, removed = sweep_once(flask_app.extensions['gifleague'])
        click.echo(f'Evicted {len(evicted)} sessions, removed {len(removed)} rooms.')

    flask_app.cli.add_command(sweep_command)

    return flask_app
