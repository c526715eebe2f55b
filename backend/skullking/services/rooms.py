"""Room lifecycle: create, join, leave, configure, start, finish, delete.

Every function takes the SQLAlchemy session it should work in. Functions
flush so that ids are available, but never commit; the caller owns the
transaction (``db.session`` in a request, ``session_scope`` elsewhere).
"""
import logging
import random

from sqlalchemy import func

from skullking.models import Room, RoomPlayer, RoomStatus, Message
from skullking.room_settings import RoomSettings
from skullking.utils import generate_room_code, is_valid_room_code
from skullking.services.errors import (
    InvalidRoomCode,
    InvalidStateTransition,
    NotEnoughPlayers,
    NotInRoom,
    NotRoomOwner,
    RoomCodeExhausted,
    RoomFull,
    RoomNotFound,
    RoomNotJoinable,
    SettingsError,
)

logger = logging.getLogger(__name__)

MIN_MAX_PLAYERS = 2
MAX_MAX_PLAYERS = 8
NAME_MAX_LENGTH = 64
MESSAGE_MAX_LENGTH = 500

_TRANSITIONS = {
    RoomStatus.LOBBY: {RoomStatus.RUNNING},
    RoomStatus.RUNNING: {RoomStatus.FINISHED},
    RoomStatus.FINISHED: set(),
}

UPDATABLE_FIELDS = ('name', 'max_players', 'settings')


def unique_room_code(session, attempts=10) -> str:
    for _ in range(attempts):
        code = generate_room_code()
        if not session.query(Room.id).filter_by(code=code).first():
            return code
        logger.warning(f"Room code collision on {code}, regenerating")
    logger.error(f"No unique room code after {attempts} attempts")
    raise RoomCodeExhausted()


def transition(room: Room, target: RoomStatus) -> Room:
    current = RoomStatus(room.status)
    if target not in _TRANSITIONS[current]:
        raise InvalidStateTransition(f'Cannot move room from {current.value} to {target.value}')
    room.status = target.value
    logger.info(f"Room {room.code} status {current.value} -> {target.value}")
    return room


def get_room(session, code, for_update=False) -> Room:
    if not is_valid_room_code(code):
        raise InvalidRoomCode()
    query = session.query(Room).filter_by(code=code)
    if for_update:
        query = query.with_for_update()
    room = query.first()
    if not room:
        raise RoomNotFound()
    return room


def list_rooms(session, statuses=None):
    query = session.query(Room)
    if statuses:
        query = query.filter(Room.status.in_([RoomStatus(s).value for s in statuses]))
    else:
        query = query.filter(Room.status != RoomStatus.FINISHED.value)
    return query.order_by(Room.created_at.desc(), Room.id.desc()).all()


def _clean_name(name):
    if name is None:
        return None
    if not isinstance(name, str):
        raise SettingsError('Room name must be a string')
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise SettingsError(f'Room name is limited to {NAME_MAX_LENGTH} characters')
    return name or None


def _clean_max_players(value, player_count=0):
    if isinstance(value, bool) or not isinstance(value, int):
        raise SettingsError('max_players must be an integer')
    if not MIN_MAX_PLAYERS <= value <= MAX_MAX_PLAYERS:
        raise SettingsError(f'max_players must be between {MIN_MAX_PLAYERS} and {MAX_MAX_PLAYERS}')
    if value < player_count:
        raise SettingsError(f'max_players ({value}) is below the current player count ({player_count})')
    return value


def _require_owner(room, user):
    if room.owner_id != user.id:
        raise NotRoomOwner()


def create_room(session, owner, name=None, max_players=None, settings=None, attempts=10) -> Room:
    room = Room(
        code=unique_room_code(session, attempts),
        name=_clean_name(name),
        owner=owner,
        max_players=_clean_max_players(max_players) if max_players is not None else MAX_MAX_PLAYERS,
        status=RoomStatus.LOBBY.value,
    )
    room.settings = RoomSettings().merge(settings)
    room.players.append(RoomPlayer(user=owner, user_name=owner.username))
    session.add(room)
    session.flush()
    logger.info(f"Created room {room.code} owned by user {owner.id}")
    return room


def join_room(session, code, user):
    """Add ``user`` to the room. Returns ``(player, created)``."""
    room = get_room(session, code, for_update=True)
    existing = room.player_for(user.id)
    if existing:
        return existing, False
    if room.status != RoomStatus.LOBBY.value:
        raise RoomNotJoinable()
    if len(room.players) >= room.max_players:
        raise RoomFull()
    player = RoomPlayer(user=user, user_name=user.username)
    room.players.append(player)
    session.flush()
    # recount, the loaded collection can miss a concurrent join
    count = session.query(func.count(RoomPlayer.id)).filter(RoomPlayer.room_id == room.id).scalar()
    if count > room.max_players:
        logger.warning(f"Room {room.code} overfilled by concurrent join ({count}/{room.max_players})")
        raise RoomFull()
    logger.info(f"User {user.id} joined room {room.code} ({len(room.players)}/{room.max_players})")
    return player, True


def leave_room(session, code, user) -> bool:
    """Remove ``user`` from the room. Returns True when the room was deleted."""
    room = get_room(session, code, for_update=True)
    player = room.player_for(user.id)
    if not player:
        raise NotInRoom()
    room.players.remove(player)
    session.flush()
    if not room.players:
        session.delete(room)
        session.flush()
        logger.info(f"Room {code} deleted, last player {user.id} left")
        return True
    if room.owner_id == user.id:
        # Earliest remaining player takes over
        heir = room.players[0]
        room.owner_id = heir.user_id
        logger.info(f"Room {code} ownership passed from {user.id} to {heir.user_id}")
    logger.info(f"User {user.id} left room {code}")
    return False


def update_room(session, code, user, data) -> Room:
    room = get_room(session, code)
    _require_owner(room, user)
    if not isinstance(data, dict):
        raise SettingsError('Expected an object')
    unknown = set(data) - set(UPDATABLE_FIELDS)
    if unknown:
        raise SettingsError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    if room.status != RoomStatus.LOBBY.value:
        raise InvalidStateTransition('Room settings can only change in the lobby')
    if 'name' in data:
        room.name = _clean_name(data['name'])
    if 'max_players' in data:
        room.max_players = _clean_max_players(data['max_players'], len(room.players))
    if 'settings' in data:
        room.settings = room.settings.merge(data['settings'])
    session.flush()
    logger.info(f"Room {code} updated by owner: {sorted(data)}")
    return room


def delete_room(session, code, user) -> None:
    room = get_room(session, code)
    _require_owner(room, user)
    session.delete(room)
    session.flush()
    logger.info(f"Room {code} deleted by owner {user.id}")


def start_room(session, code, user, min_players=2) -> Room:
    room = get_room(session, code, for_update=True)
    _require_owner(room, user)
    if room.status != RoomStatus.LOBBY.value:
        raise InvalidStateTransition(f'Room is {room.status}, not in the lobby')
    players = list(room.players)
    if len(players) < min_players:
        raise NotEnoughPlayers(f'At least {min_players} players are required to start')
    random.shuffle(players)
    for seat, p in enumerate(players):
        p.seat = seat
    transition(room, RoomStatus.RUNNING)
    session.flush()
    return room


def finish_room(session, code, user) -> Room:
    room = get_room(session, code)
    _require_owner(room, user)
    transition(room, RoomStatus.FINISHED)
    session.flush()
    return room


def post_message(session, code, user, text) -> Message:
    room = get_room(session, code)
    if not room.player_for(user.id):
        raise NotInRoom()
    if not isinstance(text, str) or not text.strip():
        raise SettingsError('Message text is required')
    text = text.strip()
    if len(text) > MESSAGE_MAX_LENGTH:
        raise SettingsError(f'Messages are limited to {MESSAGE_MAX_LENGTH} characters')
    message = Message(room=room, user_id=user.id, user_name=user.username, text=text)
    session.add(message)
    session.flush()
    return message
