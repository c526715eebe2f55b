from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from skullking import db, socketio
from skullking.models import RoomStatus
from skullking.services import rooms as svc
from skullking.services.errors import SettingsError
from skullking.socketio_events import NAMESPACE, presence, room_channel

rooms = Blueprint('rooms', __name__)


def _user():
    # unwrap the proxy before handing it to the ORM
    return current_user._get_current_object()


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError('Expected a JSON object')
    return data


def _room_payload(room):
    return room.to_dict(present_user_ids=presence.present(room.code))


def _emit_room(code, event, payload):
    socketio.emit(event, payload, to=room_channel(code), namespace=NAMESPACE)


def _emit_list_updated():
    socketio.emit('room_list_updated', {}, namespace=NAMESPACE)


@rooms.route('', methods=['GET'])
@rooms.route('/', methods=['GET'])
def list_rooms():
    raw = request.args.get('status')
    statuses = None
    if raw:
        statuses = [s.strip().upper() for s in raw.split(',') if s.strip()]
        valid = {s.value for s in RoomStatus}
        if any(s not in valid for s in statuses):
            return jsonify({'error': f'Unknown status filter: {raw}'}), 400
    result = svc.list_rooms(db.session, statuses)
    return jsonify([r.to_dict(include_players=False) for r in result])


@rooms.route('', methods=['POST'])
@rooms.route('/', methods=['POST'])
@login_required
def create_room():
    data = _json_body()
    cfg = current_app.config
    max_players = data.get('max_players')
    if max_players is None:
        max_players = cfg.get('DEFAULT_MAX_PLAYERS', 8)
    room = svc.create_room(
        db.session,
        _user(),
        name=data.get('name'),
        max_players=max_players,
        settings=data.get('settings'),
        attempts=int(cfg.get('ROOM_CODE_ATTEMPTS', 10)),
    )
    db.session.commit()
    current_app.logger.info(f"[create] room={room.code} owner={current_user.id}")
    _emit_list_updated()
    return jsonify(_room_payload(room)), 201


@rooms.route('/<string:code>', methods=['GET'])
def get_room(code):
    room = svc.get_room(db.session, code)
    return jsonify(_room_payload(room))


@rooms.route('/<string:code>', methods=['PUT'])
@login_required
def update_room(code):
    data = request.get_json(silent=True)
    if data is None:
        raise SettingsError('Expected a JSON body')
    room = svc.update_room(db.session, code, _user(), data)
    db.session.commit()
    payload = _room_payload(room)
    _emit_room(code, 'room_updated', {'room': payload})
    _emit_list_updated()
    return jsonify(payload)


@rooms.route('/<string:code>', methods=['DELETE'])
@login_required
def delete_room(code):
    svc.delete_room(db.session, code, _user())
    db.session.commit()
    presence.forget_room(code)
    _emit_room(code, 'room_deleted', {'code': code, 'message': 'Room deleted by owner'})
    _emit_list_updated()
    return '', 204


@rooms.route('/<string:code>/join', methods=['POST'])
@login_required
def join_room(code):
    player, created = svc.join_room(db.session, code, _user())
    if not created:
        return jsonify({'player': player.to_dict()}), 200
    db.session.commit()
    _emit_room(code, 'player_joined', {'player': player.to_dict()})
    _emit_list_updated()
    return jsonify({'player': player.to_dict()}), 201


@rooms.route('/<string:code>/leave', methods=['POST'])
@login_required
def leave_room(code):
    deleted = svc.leave_room(db.session, code, _user())
    db.session.commit()
    if deleted:
        presence.forget_room(code)
        _emit_room(code, 'room_deleted', {'code': code, 'message': 'Room closed, everyone left'})
    else:
        room = svc.get_room(db.session, code)
        _emit_room(code, 'room_updated', {'room': _room_payload(room)})
    _emit_list_updated()
    return jsonify({'message': 'You have left the room.', 'room_deleted': deleted})


@rooms.route('/<string:code>/start', methods=['POST'])
@login_required
def start_room(code):
    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    room = svc.start_room(db.session, code, _user(), min_players=min_players)
    db.session.commit()
    payload = _room_payload(room)
    _emit_room(code, 'room_updated', {'room': payload})
    _emit_list_updated()
    return jsonify({'room': payload})


@rooms.route('/<string:code>/finish', methods=['POST'])
@login_required
def finish_room(code):
    room = svc.finish_room(db.session, code, _user())
    db.session.commit()
    payload = _room_payload(room)
    _emit_room(code, 'room_updated', {'room': payload})
    _emit_list_updated()
    return jsonify({'room': payload})


@rooms.route('/<string:code>/messages', methods=['GET'])
def list_messages(code):
    room = svc.get_room(db.session, code)
    return jsonify([m.to_dict() for m in room.messages])


@rooms.route('/<string:code>/messages', methods=['POST'])
@login_required
def post_message(code):
    data = _json_body()
    message = svc.post_message(db.session, code, _user(), data.get('text'))
    db.session.commit()
    _emit_room(code, 'message', {'message': message.to_dict()})
    return jsonify(message.to_dict()), 201
