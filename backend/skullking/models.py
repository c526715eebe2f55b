from datetime import datetime, timezone
import enum
import json

from flask_login import UserMixin

from skullking import db, bcrypt
from skullking.room_settings import RoomSettings


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _isoformat(value):
    return value.isoformat() + 'Z' if value else None


class RoomStatus(str, enum.Enum):
    LOBBY = 'LOBBY'
    RUNNING = 'RUNNING'
    FINISHED = 'FINISHED'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(20), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'created_at': _isoformat(self.created_at),
        }


class RoomPlayer(db.Model):
    __tablename__ = 'room_player'
    __table_args__ = (
        db.UniqueConstraint('room_id', 'user_id', name='uq_room_player_room_user'),
    )
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    # Denormalised so the lobby still renders after the user is gone
    user_name = db.Column(db.String(20), nullable=True)
    seat = db.Column(db.Integer, nullable=True)
    joined_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    room = db.relationship('Room', back_populates='players')
    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'seat': self.seat,
            'joined_at': _isoformat(self.joined_at),
        }


class Room(db.Model):
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False, index=True)
    name = db.Column(db.String(64), nullable=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    max_players = db.Column(db.Integer, default=8, nullable=False)
    status = db.Column(db.String(16), default=RoomStatus.LOBBY.value, nullable=False, index=True)
    settings_json = db.Column(db.Text, nullable=True)  # JSON-encoded RoomSettings
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
    owner = db.relationship('User')
    players = db.relationship(
        'RoomPlayer',
        back_populates='room',
        order_by='RoomPlayer.id',
        cascade='all, delete-orphan',
    )
    messages = db.relationship(
        'Message',
        back_populates='room',
        order_by='Message.id',
        cascade='all, delete-orphan',
    )

    @property
    def settings(self):
        try:
            data = json.loads(self.settings_json) if self.settings_json else None
        except ValueError:
            data = None
        return RoomSettings.from_stored(data)

    @settings.setter
    def settings(self, value):
        self.settings_json = json.dumps(value.to_dict())

    def player_for(self, user_id):
        for p in self.players:
            if p.user_id == user_id:
                return p
        return None

    def to_dict(self, include_players=True, present_user_ids=None):
        payload = {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'owner_id': self.owner_id,
            'owner': {'id': self.owner.id, 'name': self.owner.username} if self.owner else None,
            'max_players': self.max_players,
            'player_count': len(self.players),
            'status': self.status,
            'settings': self.settings.to_dict(),
            'created_at': _isoformat(self.created_at),
        }
        if include_players:
            payload['players'] = [p.to_dict() for p in self.players]
        if present_user_ids is not None:
            payload['present_user_ids'] = sorted(present_user_ids)
        return payload


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    user_name = db.Column(db.String(20), nullable=False)
    text = db.Column(db.String(500), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    room = db.relationship('Room', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'text': self.text,
            'created_at': _isoformat(self.created_at),
        }
