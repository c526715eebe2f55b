import random
import re
import string

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

USERNAME_MIN_LENGTH = 2
USERNAME_MAX_LENGTH = 20

_ROOM_CODE_RE = re.compile(r'[A-Z0-9]{%d}' % ROOM_CODE_LENGTH)
_USERNAME_RE = re.compile(r'[A-Za-z0-9_]+')


def generate_room_code():
    """Generate a random room code.

    Uniqueness is not checked here; see services.rooms.unique_room_code.
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=ROOM_CODE_LENGTH))


def is_valid_room_code(code) -> bool:
    if not isinstance(code, str):
        return False
    return _ROOM_CODE_RE.fullmatch(code) is not None


def is_valid_username(username) -> bool:
    if not isinstance(username, str):
        return False
    trimmed = username.strip()
    if not USERNAME_MIN_LENGTH <= len(trimmed) <= USERNAME_MAX_LENGTH:
        return False
    return _USERNAME_RE.fullmatch(trimmed) is not None
