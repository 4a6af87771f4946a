import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    logging.basicConfig(
        level=flask_app.config.get('LOG_LEVEL', 'INFO'),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or '*'
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from kuzgun.main import main
    flask_app.register_blueprint(main)

    # One engine per app; handlers find it through current_app.extensions
    from kuzgun.services.game import GameEngine, RoomRegistry, SocketIOScheduler
    from kuzgun.socketio_events import SocketIOBroadcaster, register_socketio_handlers
    registry = RoomRegistry(code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 5)))
    scheduler = SocketIOScheduler(socketio, heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)))
    flask_app.extensions['kuzgun'] = GameEngine.from_config(
        flask_app.config, registry, SocketIOBroadcaster(socketio), scheduler
    )
    register_socketio_handlers()

    @click.command('serve')
    @click.option('--host', default='0.0.0.0', show_default=True)
    @click.option('--port', default=3001, show_default=True, type=int)
    def serve_command(host, port):
        """Runs the Socket.IO game server."""
        flask_app.logger.info(f"Serving on http://{host}:{port}")
        socketio.run(flask_app, host=host, port=port, allow_unsafe_werkzeug=True)

    flask_app.cli.add_command(serve_command)

    return flask_app
