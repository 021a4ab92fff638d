"""Services package: expose all concrete services from one import."""
from .history_service import HistoryService
from .list_store import ListStore, resolve_restore_target
from .picker_session import PickerSession
from .scheduler import CallbackScheduler
from .selector import EmptySelectionError, RandomSelector

__all__ = [
    'HistoryService',
    'ListStore',
    'resolve_restore_target',
    'PickerSession',
    'CallbackScheduler',
    'EmptySelectionError',
    'RandomSelector',
]
