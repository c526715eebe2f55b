from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError
from skullking import db
from skullking.health import health_report
from skullking.models import User
from skullking.utils import is_valid_username

main = Blueprint('main', __name__)

PASSWORD_MIN_LENGTH = 6


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Skull King lobby server!'})


@main.route('/api/health')
def health():
    payload, status = health_report(current_app.config.get('APP_ENV', 'development'))
    if status != 200:
        current_app.logger.error(f"[health] unhealthy: {payload.get('error')}")
    return jsonify(payload), status


@main.route('/api/socket', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
def socket_placeholder():
    # The real transport is Socket.IO on /ws
    if request.method in ('GET', 'POST'):
        return jsonify({'message': 'Socket server initialized'})
    return jsonify({'error': 'Method not allowed'}), 405


@main.route('/api/users/check')
def check_username():
    username = request.args.get('username')
    if not is_valid_username(username):
        return jsonify({'error': 'Invalid username'}), 400
    username = username.strip()
    taken = User.query.filter_by(username=username).first() is not None
    return jsonify({'available': not taken, 'username': username})


@main.route('/api/users', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400
    username = data.get('username')
    password = data.get('password')
    if not is_valid_username(username):
        return jsonify({'error': 'Invalid username'}), 400
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        return jsonify({'error': f'Password must be at least {PASSWORD_MIN_LENGTH} characters'}), 400

    username = username.strip()
    if User.query.filter_by(username=username).first():
        return jsonify({'error': 'Username already exists'}), 409

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.session.rollback()
        return jsonify({'error': 'Username already exists'}), 409
    login_user(user, remember=True)
    current_app.logger.info(f"[register] user={user.id} username={user.username}")
    return jsonify(user.to_dict()), 201


@main.route('/api/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400
    username = data.get('username')
    password = data.get('password')
    username = username.strip() if isinstance(username, str) else None
    user = User.query.filter_by(username=username).first() if username else None
    if user and isinstance(password, str) and user.check_password(password):
        login_user(user, remember=True)
        return jsonify(user.to_dict())
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/api/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})


@main.route('/api/me')
@login_required
def me():
    return jsonify(current_user.to_dict())
