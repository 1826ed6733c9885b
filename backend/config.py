import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of browser origins allowed to open a socket
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    ).split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Game rules
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '10'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Room ids are 6 digit strings; redraw this many times on collision
    ROOM_ID_MAX_ATTEMPTS = int(os.environ.get('ROOM_ID_MAX_ATTEMPTS', '50'))
    # Session expiry sweeper (seconds)
    SESSION_TTL_SEC = int(os.environ.get('SESSION_TTL_SEC', '300'))
    SWEEP_INTERVAL_SEC = int(os.environ.get('SWEEP_INTERVAL_SEC', '60'))
    # Rooms untouched for this long are dropped by the sweeper. 0 disables.
    ROOM_IDLE_TTL_SEC = int(os.environ.get('ROOM_IDLE_TTL_SEC', '3600'))
