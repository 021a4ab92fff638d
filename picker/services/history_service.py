"""Business logic for the winner history list."""
import datetime
import json
import logging
from typing import Dict, List, Optional

from ..repositories.base import write_json
from ..repositories.history_repository import HistoryRepository


class HistoryService:
    """Manages the winner history, delegating persistence to
    :class:`~picker.repositories.history_repository.HistoryRepository`.

    Provides record, clear, export, and import operations on top of the
    raw repository so that callers never need to handle file I/O directly.
    Write failures are logged; the in-memory history keeps working.
    """

    def __init__(self, repository: HistoryRepository) -> None:
        self._repo = repository
        self._log = logging.getLogger('wheelspin.history')

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def data(self) -> List[Dict]:
        """Return the in-memory history list (same object as the repo)."""
        return self._repo.data

    def record(self, item: str, lst: Optional[Dict] = None) -> Dict:
        """Append a winner record for *item* drawn from *lst* and persist."""
        entry = {
            'item': item,
            'list_id': lst.get('id') if lst else None,
            'list_name': lst.get('name') if lst else None,
            'picked_at': datetime.datetime.now().isoformat(timespec='seconds'),
        }
        self._repo.append(entry)
        return entry

    def recent(self, count: int = 10) -> List[Dict]:
        """Return up to *count* most recent records, newest first."""
        if count <= 0:
            return []
        return list(reversed(self._repo.data[-count:]))

    def clear(self) -> None:
        """Empty the history and persist."""
        self._repo.data.clear()
        self._repo.save()

    def export(self, filepath: str) -> bool:
        """Export the history to *filepath* as JSON with metadata.

        Returns:
            ``True`` on success, ``False`` on I/O failure.
        """
        export_data: Dict = {
            'history': list(self._repo.data),
            'exported_at': datetime.datetime.now().isoformat(),
        }
        try:
            write_json(filepath, export_data)
        except OSError as exc:
            self._log.warning("Could not export history to %s: %s", filepath, exc)
            return False
        return True

    def import_from(self, filepath: str) -> Optional[int]:
        """Import history entries from *filepath*.

        Accepts either a plain list or an export dict produced by
        :meth:`export`.

        Returns:
            Number of entries loaded, or ``None`` on failure.
        """
        try:
            with open(filepath, 'r', encoding='utf-8') as fh:
                raw = json.load(fh)
        except (IOError, json.JSONDecodeError) as exc:
            self._log.warning("Could not import history from %s: %s", filepath, exc)
            return None

        if isinstance(raw, list):
            entries = raw
        elif isinstance(raw, dict) and isinstance(raw.get('history'), list):
            entries = raw['history']
        else:
            return None

        self._repo.data[:] = self._repo.records(entries)
        self._repo.save()
        return len(self._repo.data)
