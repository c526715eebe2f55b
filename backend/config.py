import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _origins():
    raw = os.environ.get('ALLOWED_ORIGINS')
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///skullking.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    APP_ENV = os.environ.get('APP_ENV', 'development')
    PORT = int(os.environ.get('PORT', '3000'))
    ALLOWED_ORIGINS = _origins()
    # TLS, only honoured by run.py
    FORCE_HTTPS = _flag('FORCE_HTTPS')
    SSL_CERT_PATH = os.environ.get('SSL_CERT_PATH')
    SSL_KEY_PATH = os.environ.get('SSL_KEY_PATH')
    SSL_CA_PATH = os.environ.get('SSL_CA_PATH')
    # Lobby rules
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    DEFAULT_MAX_PLAYERS = int(os.environ.get('DEFAULT_MAX_PLAYERS', '8'))
    ROOM_CODE_ATTEMPTS = int(os.environ.get('ROOM_CODE_ATTEMPTS', '10'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or ('DEBUG' if APP_ENV == 'development' else 'INFO')
