from flask import Blueprint

game = Blueprint('game', __name__)

from patternpro.game import routes, events  # noqa: E402,F401
