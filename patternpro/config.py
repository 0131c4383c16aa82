import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')

    # Human phase
    ROUND_PUZZLES = int(os.environ.get('ROUND_PUZZLES', 10))
    ANSWER_TIMEOUT = float(os.environ.get('ANSWER_TIMEOUT', 10))

    # Training drift cadence and AI test set size
    TICK_INTERVAL = float(os.environ.get('TICK_INTERVAL', 0.3))
    AI_BATCH_SIZE = int(os.environ.get('AI_BATCH_SIZE', 25))

    # Seconds the answer feedback stays up before the next puzzle
    RESULT_PAUSE = float(os.environ.get('RESULT_PAUSE', 1.5))

    # Largest count, posed or batch_size the JSON routes accept
    MAX_BATCH = int(os.environ.get('MAX_BATCH', 500))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')
