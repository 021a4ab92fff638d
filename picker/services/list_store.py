"""Business logic for the named item lists and global picker settings."""
import copy
import logging
import uuid
from typing import Callable, Dict, List, Optional, Sequence

from ..defaults import clamp_duration

logger = logging.getLogger('wheelspin.store')


def resolve_restore_target(lst: Optional[Dict]) -> List[str]:
    """Return the items a restore resets *lst* to.

    ``originalItems`` when the list carries it, otherwise the current
    ``items`` (lists written by older releases), otherwise nothing.
    """
    if not lst:
        return []
    original = lst.get('originalItems')
    if original is not None:
        return list(original)
    return list(lst.get('items') or [])


class ListStore:
    """Owns the picker state: named lists, the active list pointer and settings.

    The state is a plain dict in the persisted document layout (see
    :mod:`picker.repositories.state_repository`).  Every successful mutation
    replaces the affected entries in one assignment and then calls
    *on_change* with the new state, which is how the state gets persisted.
    Rejected operations leave the state untouched, log at INFO and return a
    falsy value.
    """

    def __init__(self, state: Dict,
                 on_change: Optional[Callable[[Dict], object]] = None) -> None:
        if not state.get('lists'):
            raise ValueError('ListStore needs at least one list')
        self._state = copy.deepcopy(state)
        self._on_change = on_change
        if self.get_list(self._state.get('activeListId')) is None:
            self._state['activeListId'] = self._state['lists'][0]['id']

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _index_of(self, list_id) -> Optional[int]:
        for i, lst in enumerate(self._state['lists']):
            if lst['id'] == list_id:
                return i
        return None

    def _replace_list(self, position: int, updated: Dict) -> None:
        lists = list(self._state['lists'])
        lists[position] = updated
        self._state['lists'] = lists

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    @staticmethod
    def _reject(message: str, *args) -> None:
        logger.info("Rejected: " + message, *args)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> Dict:
        """Return a deep copy of the full state (safe to hand to callers)."""
        return copy.deepcopy(self._state)

    @property
    def lists(self) -> List[Dict]:
        return copy.deepcopy(self._state['lists'])

    @property
    def active_list_id(self) -> str:
        return self._state['activeListId']

    @property
    def active_list(self) -> Dict:
        return copy.deepcopy(self._state['lists'][self._index_of(self.active_list_id)])

    @property
    def remove_after_pick(self) -> bool:
        return bool(self._state.get('removeAfterPick', False))

    @property
    def animation_duration(self) -> float:
        return self._state.get('animationDuration')

    def get_list(self, list_id) -> Optional[Dict]:
        position = self._index_of(list_id)
        if position is None:
            return None
        return copy.deepcopy(self._state['lists'][position])

    def items(self, list_id) -> Optional[List[str]]:
        """Return the current items of *list_id*, or ``None`` for an unknown list."""
        position = self._index_of(list_id)
        if position is None:
            return None
        return list(self._state['lists'][position]['items'])

    def removed_count(self, list_id) -> int:
        """Return how many items were eliminated from *list_id* since its last restore."""
        lst = self.get_list(list_id)
        if lst is None or lst.get('originalItems') is None:
            return 0
        return max(0, len(lst['originalItems']) - len(lst['items']))

    # ------------------------------------------------------------------
    # List lifecycle
    # ------------------------------------------------------------------

    def create_list(self, name: str, items: Sequence[str]) -> Optional[Dict]:
        """Create a list from *items* and make it the active one.

        Names and items are trimmed; blank items are dropped.

        Returns:
            A copy of the new list, or ``None`` if the name or the item set
            is empty after trimming.
        """
        name = (name or '').strip()
        cleaned = [str(item).strip() for item in items or []]
        cleaned = [item for item in cleaned if item]
        if not name:
            self._reject("create_list with an empty name")
            return None
        if not cleaned:
            self._reject("create_list '%s' with no items", name)
            return None

        new_list = {
            'id': uuid.uuid4().hex,
            'name': name,
            'items': list(cleaned),
            'originalItems': list(cleaned),
            'isDefault': False,
        }
        self._state['lists'] = self._state['lists'] + [new_list]
        self._state['activeListId'] = new_list['id']
        logger.debug("Created list %s (%s) with %d items", new_list['id'], name, len(cleaned))
        self._changed()
        return copy.deepcopy(new_list)

    def delete_list(self, list_id) -> bool:
        """Delete *list_id*.  The last remaining list can never be deleted.

        If the active list is deleted the pointer moves to the first
        remaining list.
        """
        position = self._index_of(list_id)
        if position is None:
            self._reject("delete_list for unknown id %s", list_id)
            return False
        if len(self._state['lists']) <= 1:
            self._reject("delete_list for the only remaining list %s", list_id)
            return False

        remaining = [lst for lst in self._state['lists'] if lst['id'] != list_id]
        active_id = self._state['activeListId']
        if active_id == list_id:
            active_id = remaining[0]['id']
        self._state['lists'] = remaining
        self._state['activeListId'] = active_id
        self._changed()
        return True

    def select_list(self, list_id) -> bool:
        if self._index_of(list_id) is None:
            self._reject("select_list for unknown id %s", list_id)
            return False
        self._state['activeListId'] = list_id
        self._changed()
        return True

    def rename_list(self, list_id, new_name: str) -> bool:
        position = self._index_of(list_id)
        new_name = (new_name or '').strip()
        if position is None or not new_name:
            self._reject("rename_list %s to %r", list_id, new_name)
            return False
        updated = dict(self._state['lists'][position], name=new_name)
        self._replace_list(position, updated)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Item mutations
    # ------------------------------------------------------------------

    def remove_item(self, list_id, item: str, index: Optional[int] = None) -> bool:
        """Remove one occurrence of *item* from the current items of *list_id*.

        When *index* is given and still holds *item*, that exact occurrence is
        removed; otherwise the first occurrence is.  The remaining order is
        preserved.

        Returns:
            ``True`` if removed; ``False`` if the list or the item wasn't found.
        """
        position = self._index_of(list_id)
        if position is None:
            self._reject("remove_item from unknown list %s", list_id)
            return False
        current = list(self._state['lists'][position]['items'])
        if index is None or not 0 <= index < len(current) or current[index] != item:
            if item not in current:
                self._reject("remove_item %r not in list %s", item, list_id)
                return False
            index = current.index(item)
        del current[index]
        self._replace_list(position, dict(self._state['lists'][position], items=current))
        self._changed()
        return True

    def restore_list(self, list_id) -> bool:
        """Reset the current items of *list_id* to its restore target.

        ``originalItems`` itself is never touched.
        """
        position = self._index_of(list_id)
        if position is None:
            self._reject("restore_list for unknown id %s", list_id)
            return False
        lst = self._state['lists'][position]
        self._replace_list(position, dict(lst, items=resolve_restore_target(lst)))
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_remove_after_pick(self, enabled: bool) -> bool:
        self._state['removeAfterPick'] = bool(enabled)
        self._changed()
        return True

    def set_animation_duration(self, seconds) -> Optional[float]:
        """Store *seconds* clamped to the allowed range.

        Returns:
            The stored value, or ``None`` if *seconds* is not a number.
        """
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds != seconds:
            self._reject("set_animation_duration(%r)", seconds)
            return None
        self._state['animationDuration'] = clamp_duration(seconds)
        self._changed()
        return self._state['animationDuration']
