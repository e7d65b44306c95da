import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///games.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Comma separated list of origins allowed to talk to the HTTP and socket endpoints
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',') if o.strip()]
    # Room identifiers
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    SESSION_TOKEN_BYTES = int(os.environ.get('SESSION_TOKEN_BYTES', '12'))
    # Game rules
    DEFAULT_MAX_NUMBER = int(os.environ.get('DEFAULT_MAX_NUMBER', '10'))
    MAX_NUMBER_CEILING = int(os.environ.get('MAX_NUMBER_CEILING', '1000'))
    CHALLENGE_MAX_LENGTH = int(os.environ.get('CHALLENGE_MAX_LENGTH', '200'))
    NAME_MAX_LENGTH = int(os.environ.get('NAME_MAX_LENGTH', '40'))
    # Room cleanup timers (seconds)
    ROOM_RETENTION_SEC = int(os.environ.get('ROOM_RETENTION_SEC', '300'))
    ROOM_IDLE_EXPIRY_SEC = int(os.environ.get('ROOM_IDLE_EXPIRY_SEC', '3600'))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '60'))
    # Maximum rows returned by /api/history
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', '50'))
    # Create missing tables on startup; disable when the schema is managed with `flask db upgrade`
    AUTO_CREATE_TABLES = os.environ.get('AUTO_CREATE_TABLES', 'true').lower() in ('1', 'true', 'yes')
