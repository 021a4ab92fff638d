"""Repository package: expose all concrete repositories from one import."""
from .history_repository import HistoryRepository
from .state_repository import (
    StateRepository, default_state, migrate_state, normalize_state,
)

__all__ = [
    'HistoryRepository',
    'StateRepository',
    'default_state',
    'migrate_state',
    'normalize_state',
]
