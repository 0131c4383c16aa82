# Patch the stdlib before anything else imports it
import eventlet
eventlet.monkey_patch()

import os

from patternpro import create_app, socketio

app = create_app()


if __name__ == '__main__':
    host = os.environ.get('HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 5000))
    print(f"🧩 Pattern Predictor Pro on http://{host}:{port}")
    print(f"⏱️  {app.config['ROUND_PUZZLES']} puzzles, {app.config['ANSWER_TIMEOUT']}s each, "
          f"AI solves {app.config['AI_BATCH_SIZE']}")
    socketio.run(app, host=host, port=port, debug=os.environ.get('FLASK_DEBUG') == '1')
