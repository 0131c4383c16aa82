from flask import current_app, request

from patternpro import socketio
from patternpro.game.session import sessions, settings_from_config


@socketio.on("start_round")
def handle_start_round():
    sessions.start_round(request.sid, settings_from_config(current_app.config))


@socketio.on("submit_answer")
def handle_submit_answer(data):
    answer = data.get("answer") if isinstance(data, dict) else data
    sessions.submit_answer(request.sid, answer)


@socketio.on("boost")
def handle_boost():
    sessions.boost(request.sid)


@socketio.on("disconnect")
def handle_disconnect(*args):
    sessions.disconnect(request.sid)
