import logging

from flask import Flask, jsonify
from flask_socketio import SocketIO
from patternpro.config import Config
from patternpro.errors import InvalidArgument


socketio = SocketIO()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Socket handlers must be declared before init_app so every new server gets them
    from patternpro.game import game

    socketio.init_app(app, async_mode=app.config.get('SOCKETIO_ASYNC_MODE'))
    app.register_blueprint(game)

    # ── JSON errors ──────────────────────────────────────────────────────────
    @app.errorhandler(InvalidArgument)
    def handle_invalid_argument(error):
        return jsonify({"error": str(error)}), 400

    return app
