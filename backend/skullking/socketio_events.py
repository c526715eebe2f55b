import threading
from typing import Dict, Set

from flask import current_app, request
from flask_login import current_user
from flask_socketio import join_room, leave_room, emit

from skullking import socketio
from skullking.models import Room
from skullking.utils import is_valid_room_code

NAMESPACE = '/ws'


def room_channel(code: str) -> str:
    return f"room:{code}"


class PresenceTracker:
    """Which users currently have a socket joined to which room.

    Lives in process memory only; a restart forgets everyone and clients
    re-announce themselves on reconnect.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_sid: Dict[str, Dict[str, int]] = {}

    def join(self, sid: str, code: str, user_id: int) -> None:
        with self._lock:
            self._by_sid.setdefault(sid, {})[code] = user_id

    def leave(self, sid: str, code: str) -> bool:
        with self._lock:
            rooms = self._by_sid.get(sid)
            if not rooms or code not in rooms:
                return False
            del rooms[code]
            if not rooms:
                del self._by_sid[sid]
            return True

    def drop(self, sid: str) -> Set[str]:
        """Forget a socket entirely; returns the room codes it was in."""
        with self._lock:
            return set(self._by_sid.pop(sid, {}))

    def forget_room(self, code: str) -> None:
        """Drop every socket's entry for a room that no longer exists."""
        with self._lock:
            for sid in list(self._by_sid):
                rooms = self._by_sid[sid]
                rooms.pop(code, None)
                if not rooms:
                    del self._by_sid[sid]

    def present(self, code: str) -> Set[int]:
        with self._lock:
            return {rooms[code] for rooms in self._by_sid.values() if code in rooms}

    def clear(self) -> None:
        with self._lock:
            self._by_sid.clear()


presence = PresenceTracker()


def _code_from(data):
    return data.get('code') if isinstance(data, dict) else None


def _presence_payload(code: str):
    return {'code': code, 'present_user_ids': sorted(presence.present(code))}


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(reason=None):
    for code in presence.drop(request.sid):
        socketio.emit('presence', _presence_payload(code), to=room_channel(code), namespace=NAMESPACE)
        current_app.logger.debug(f"[presence] sid={request.sid} dropped from room={code}")


def handle_join_room(data):
    code = _code_from(data)
    if not is_valid_room_code(code):
        emit('error', {'message': 'A valid room code is required'})
        return
    if not current_user.is_authenticated:
        emit('error', {'message': 'Unauthorized'})
        return
    if not Room.query.filter_by(code=code).first():
        emit('error', {'message': 'Room not found'})
        return
    channel = room_channel(code)
    join_room(channel)
    presence.join(request.sid, code, current_user.id)
    current_app.logger.debug(f"[presence] user={current_user.id} joined room={code}")
    emit('joined', {'room': channel})
    emit('presence', _presence_payload(code), to=channel)


def handle_leave_room(data):
    code = _code_from(data)
    if not is_valid_room_code(code):
        emit('error', {'message': 'A valid room code is required'})
        return
    channel = room_channel(code)
    leave_room(channel)
    emit('left', {'room': channel})
    if presence.leave(request.sid, code):
        emit('presence', _presence_payload(code), to=channel)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_room', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('leave_room', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
