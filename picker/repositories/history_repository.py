"""Repository for the winner history ([{item, list_id, list_name, picked_at}, ...])."""
from typing import Dict, List, Optional
from .base import BaseRepository


class HistoryRepository(BaseRepository):
    """Persists the winner history list to a JSON file.

    Schema::

        [{"item": "<winner>", "list_id": "<id>", "list_name": "<name>",
          "picked_at": "<ISO timestamp>"}, ...]

    Plain-string entries written by hand are normalised to records on load;
    entries without a usable item are dropped.
    The list is capped at *max_size* entries on every save.
    """

    def __init__(self, file_path: str = '.wheelspin_history.json',
                 max_size: int = 50) -> None:
        super().__init__(file_path)
        self.max_size = max_size
        self.data: List[Dict] = self.records(self._load([]))

    @staticmethod
    def normalise(entry) -> Optional[Dict]:
        """Return *entry* as a history record, or ``None`` if it names no item."""
        if isinstance(entry, dict):
            item = entry.get('item')
            if not isinstance(item, str):
                return None
            return {
                'item': item,
                'list_id': entry.get('list_id'),
                'list_name': entry.get('list_name'),
                'picked_at': entry.get('picked_at'),
            }
        if isinstance(entry, bool) or not isinstance(entry, (str, int, float)):
            return None
        return {'item': str(entry), 'list_id': None, 'list_name': None, 'picked_at': None}

    @classmethod
    def records(cls, raw) -> List[Dict]:
        """Normalise a stored or imported list, skipping unusable entries."""
        if not isinstance(raw, list):
            return []
        return [record for record in map(cls.normalise, raw) if record is not None]

    def append(self, entry: Dict) -> bool:
        """Add *entry* to the history and persist (trimmed to *max_size*)."""
        self.data.append(entry)
        del self.data[:-self.max_size]
        return self.save()

    def save(self) -> bool:
        """Persist the history, trimming to the configured *max_size*."""
        return self._save(self.data[-self.max_size:])
