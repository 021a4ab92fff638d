"""Repository base class used by all concrete repositories."""
import json
import logging
import os
import tempfile
from typing import Any


def write_json(path: str, data: Any) -> None:
    """Write *data* as JSON to *path* via a temp file and rename.

    The target is either the old file or the complete new one, never a
    partial write.  Raises ``OSError`` (or ``TypeError``/``ValueError`` for
    unserialisable data) with the temp file removed.
    """
    fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(os.path.abspath(path)),
                                    suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class BaseRepository:
    """JSON file persistence shared by the state and history repositories.

    Neither direction raises: :meth:`_load` falls back to a default and
    :meth:`_save` reports failure through its return value and the
    ``wheelspin.repository.<Class>`` logger, leaving the caller's in-memory
    data authoritative.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'wheelspin.repository.{type(self).__name__}')

    @property
    def path(self) -> str:
        return self._path

    def _load(self, default: Any) -> Any:
        """Load JSON from *self._path*, returning *default* on missing/corrupt file."""
        if os.path.exists(self._path):
            try:
                with open(self._path, 'r', encoding='utf-8') as fh:
                    return json.load(fh)
            except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
                self._log.warning("Could not load %s: %s", self._path, exc)
        return default

    def _save(self, data: Any) -> bool:
        """Persist *data*.  Returns ``False`` and logs a warning on failure."""
        try:
            write_json(self._path, data)
        except (OSError, TypeError, ValueError) as exc:
            self._log.warning("Could not save %s: %s", self._path, exc)
            return False
        return True
