"""Repository for the picker state document (lists, active list, settings).

Schema::

    {
      "schemaVersion": 1,
      "lists": [{"id", "name", "items", "originalItems", "isDefault"}],
      "activeListId": "<list id>",
      "removeAfterPick": false,
      "animationDuration": 3
    }

Documents written by older releases are migrated on load (see
:func:`migrate_state`), then normalised so the in-memory store can rely on
its invariants: at least one list, a valid active pointer, and a clamped
animation duration.
"""
import copy
from typing import Dict, List, Optional

from ..defaults import (
    DEFAULT_ANIMATION_DURATION, SCHEMA_VERSION, builtin_lists, clamp_duration,
)
from .base import BaseRepository


def default_state() -> Dict:
    """Return the state of a fresh profile: built-in lists and default settings."""
    lists = builtin_lists()
    return {
        'schemaVersion': SCHEMA_VERSION,
        'lists': lists,
        'activeListId': lists[0]['id'],
        'removeAfterPick': False,
        'animationDuration': DEFAULT_ANIMATION_DURATION,
    }


def stored_version(document: Dict) -> int:
    """Return the schema version recorded in *document* (legacy ``version`` key accepted)."""
    version = document.get('schemaVersion', document.get('version', 0))
    if isinstance(version, bool) or not isinstance(version, int):
        return 0
    return version


def _as_list(value) -> List:
    """Return *value* if it is a list, else an empty list."""
    return value if isinstance(value, list) else []


def _from_legacy_layout(document: Dict) -> Dict:
    """Convert the pre-lists layout (``presets`` + ``wheelSettings``) to the current one."""
    settings = document.get('wheelSettings')
    if not isinstance(settings, dict):
        settings = {}
    return {
        'version': 0,
        'lists': _as_list(document.get('presets')),
        'activeListId': document.get('currentPresetId'),
        'removeAfterPick': settings.get('removeOnPick', False),
        'animationDuration': settings.get('spinDuration', DEFAULT_ANIMATION_DURATION),
    }


def migrate_state(document: Dict, current_version: int = SCHEMA_VERSION) -> Dict:
    """Bring *document* up to *current_version*.

    When the stored version is older, built-in lists are replaced wholesale by
    the current built-in set, user-created lists (no ``isDefault`` marker) are
    kept verbatim after them, and the active pointer resets to the first
    built-in.  Documents already at the current version come back unchanged,
    so running this twice is a no-op.

    Returns a new dict; *document* is not modified.
    """
    migrated = copy.deepcopy(document)
    if 'lists' not in migrated and 'presets' in migrated:
        migrated = _from_legacy_layout(migrated)

    if stored_version(migrated) >= current_version:
        return migrated

    builtins = builtin_lists()
    user_lists = [
        entry for entry in _as_list(migrated.get('lists'))
        if isinstance(entry, dict) and not entry.get('isDefault')
    ]
    migrated.pop('version', None)
    migrated['lists'] = builtins + user_lists
    migrated['activeListId'] = builtins[0]['id']
    migrated['schemaVersion'] = current_version
    return migrated


def _clean_items(raw) -> Optional[List[str]]:
    """Return *raw* as a list of strings, or ``None`` if it is not a list.

    Legacy item objects (``{"id": ..., "name": ...}``) are reduced to their name.
    """
    if not isinstance(raw, list):
        return None
    items = []
    for item in raw:
        if isinstance(item, dict):
            item = item.get('name')
        if isinstance(item, bool) or item is None:
            continue
        if isinstance(item, (int, float)):
            item = str(item)
        if isinstance(item, str):
            items.append(item)
    return items


def _clean_list(entry) -> Optional[Dict]:
    if not isinstance(entry, dict):
        return None
    list_id = entry.get('id')
    name = entry.get('name')
    items = _clean_items(entry.get('items'))
    if not isinstance(list_id, str) or not list_id or not isinstance(name, str) or items is None:
        return None
    cleaned = {'id': list_id, 'name': name, 'items': items}
    original = _clean_items(entry.get('originalItems'))
    if original is not None:
        cleaned['originalItems'] = original
    cleaned['isDefault'] = bool(entry.get('isDefault', False))
    return cleaned


def normalize_state(document: Dict) -> Dict:
    """Return a copy of *document* satisfying the store invariants.

    Malformed list entries and duplicate ids (first one wins) are dropped.  A
    document left with no usable lists is replaced by :func:`default_state`.
    """
    lists: List[Dict] = []
    seen = set()
    for entry in _as_list(document.get('lists')):
        cleaned = _clean_list(entry)
        if cleaned is None or cleaned['id'] in seen:
            continue
        seen.add(cleaned['id'])
        lists.append(cleaned)
    if not lists:
        return default_state()

    active_id = document.get('activeListId')
    if not isinstance(active_id, str) or active_id not in seen:
        active_id = lists[0]['id']

    return {
        'schemaVersion': stored_version(document) or SCHEMA_VERSION,
        'lists': lists,
        'activeListId': active_id,
        'removeAfterPick': bool(document.get('removeAfterPick', False)),
        'animationDuration': clamp_duration(document.get('animationDuration')),
    }


class StateRepository(BaseRepository):
    """Persists the whole picker state as one JSON document.

    :meth:`load` never raises: a missing, unreadable or unusable file yields
    :func:`default_state`.  :meth:`save` reports failure through its return
    value and the log so the in-memory session keeps working.
    """

    def __init__(self, file_path: str = '.wheelspin_state.json') -> None:
        super().__init__(file_path)
        self.migrated = False

    def load(self) -> Dict:
        """Read, migrate and normalise the stored state."""
        self.migrated = False
        raw = self._load(None)
        if not isinstance(raw, dict):
            if raw is not None:
                self._log.warning("Ignoring %s: expected a JSON object", self._path)
            return default_state()
        if not (raw.get('lists') or raw.get('presets')):
            return default_state()

        previous = stored_version(raw) if 'lists' in raw else 0
        migrated = migrate_state(raw)
        if stored_version(migrated) != previous:
            self.migrated = True
            self._log.info("Migrated %s from schema version %d to %d",
                           self._path, previous, stored_version(migrated))
        return normalize_state(migrated)

    def save(self, state: Dict) -> bool:
        """Write *state* to disk.  Returns ``False`` (and logs) on failure."""
        return self._save(state)
