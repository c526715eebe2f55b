import logging

from flask import Flask, jsonify, redirect, request
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _configure_logging(flask_app):
    level = getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )
    flask_app.logger.setLevel(level)
    logging.getLogger('skullking').setLevel(level)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _configure_logging(flask_app)

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from skullking.routes import main
    flask_app.register_blueprint(main)

    from skullking.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from skullking.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from skullking.services.errors import RoomError

    @flask_app.errorhandler(RoomError)
    def handle_room_error(exc):
        # Drop anything a half-finished service call left in the session
        db.session.rollback()
        return jsonify({'error': exc.message}), exc.status_code

    @flask_app.before_request
    def force_https():
        if not flask_app.config.get('FORCE_HTTPS') or request.path == '/api/health':
            return None
        proto = request.headers.get('X-Forwarded-Proto', request.scheme)
        if proto != 'https':
            return redirect(request.url.replace('http://', 'https://', 1), code=301)
        return None

    # Flask-Login user loader
    from skullking.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates every table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Database has been reset.')

    @click.command('purge-users')
    def purge_users_command():
        """Deletes every user together with the rooms they own."""
        from skullking.database import session_scope
        from skullking.services.users import purge_users
        with flask_app.app_context():
            with session_scope(db.engine) as session:
                count = purge_users(session)
            click.echo(f'Deleted {count} user(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(purge_users_command)

    return flask_app
