"""Versioned room settings.

Settings are a closed set of keys. Client input is validated strictly;
payloads read back from the database are loaded leniently so that a key
dropped in a later version does not make an old room unreadable.
"""
import logging
from dataclasses import dataclass, asdict, fields, replace

from skullking.services.errors import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1

SCORE_METHODS = ('SKULLKING', 'RASCAL')

# Cards dealt per round for each format
GAME_FORMATS = {
    'CLASSIC': [1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
    'NO_ODD': [2, 4, 6, 8, 10, 2, 4, 6, 8, 10],
    'READY_TO_FIGHT': [6, 7, 8, 9, 10],
    'LIGHTNING_ATTACK': [5, 5, 5, 5, 5],
    'BARRAGE_SHOT': [10] * 10,
    'WHIRLWIND': [9, 7, 5, 3, 1, 9, 7, 5, 3, 1],
    'BEDTIME': [1],
}

_CHOICES = {
    'score_method': SCORE_METHODS,
    'game_format': tuple(GAME_FORMATS),
}


@dataclass(frozen=True)
class RoomSettings:
    score_method: str = 'SKULLKING'
    game_format: str = 'CLASSIC'
    kraken: bool = False
    whale: bool = False
    loot: bool = False
    pirate_powers: bool = False

    @classmethod
    def keys(cls):
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_stored(cls, data):
        """Load a stored payload, dropping keys this version does not know."""
        if not data:
            return cls()
        version = data.get('version', 0)
        if isinstance(version, int) and version > SETTINGS_VERSION:
            logger.warning(f"Room settings version {version} is newer than {SETTINGS_VERSION}")
        known = {}
        for key, value in data.items():
            if key == 'version':
                continue
            if key not in cls.keys():
                logger.warning(f"Ignoring unknown stored room setting {key!r}")
                continue
            try:
                _check(key, value)
            except SettingsError:
                logger.warning(f"Ignoring invalid stored room setting {key}={value!r}")
                continue
            known[key] = value
        return cls(**known)

    def merge(self, updates):
        """Return a copy with ``updates`` applied; raises SettingsError on bad input."""
        if updates is None:
            return self
        if not isinstance(updates, dict):
            raise SettingsError('Settings must be an object')
        changes = {}
        for key, value in updates.items():
            if key == 'version':
                if value != SETTINGS_VERSION:
                    raise SettingsError(f'Unsupported settings version: {value!r}')
                continue
            if key not in self.keys():
                raise SettingsError(f'Unknown setting: {key}')
            _check(key, value)
            changes[key] = value
        return replace(self, **changes)

    def to_dict(self):
        payload = {'version': SETTINGS_VERSION}
        payload.update(asdict(self))
        return payload


def _check(key, value):
    choices = _CHOICES.get(key)
    if choices is not None:
        if value not in choices:
            raise SettingsError(f'Invalid value for {key}: {value!r}')
    elif not isinstance(value, bool):
        raise SettingsError(f'Setting {key} must be a boolean')
