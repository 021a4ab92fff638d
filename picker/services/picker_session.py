"""Spin orchestration against the active list.

A spin has two halves.  :meth:`PickerSession.request_spin` draws the winning
index and hands ``{index, target_angle}`` to the presentation layer, which
animates the wheel for the configured duration.  When the animation is done
the presentation calls :meth:`PickerSession.complete_spin`, which resolves
the index to an item, records it and applies remove-after-pick.

The list can change between the two halves (the user deletes it, removes
items, restores it).  The request therefore captures ``(list_id, items,
index)`` and completion only accepts the winner if that list still exists and
still holds the captured value.

Each request carries a ``spin_id``.  A presentation that schedules its own
completion passes it back to :meth:`PickerSession.complete_spin` so a
callback left over from a cancelled spin cannot finish a newer one.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from .list_store import ListStore
from .scheduler import CallbackScheduler
from .selector import RandomSelector

logger = logging.getLogger('wheelspin.session')

MAX_SEQUENCE = 10
DEFAULT_SPIN_PAUSE = 1.0

# Reasons reported through ``stop_reason`` / ``on_sequence_end``.
STOP_COMPLETED = 'completed'
STOP_LIST_EMPTY = 'list_empty'
STOP_LIST_CHANGED = 'list_changed'
STOP_CANCELLED = 'cancelled'


class PickerSession:
    """Drives single spins and runs of consecutive spins.

    Args:
        store: The list store holding the active list and settings.
        selector: Random selector used for every draw.
        scheduler: Queue used for the pause between consecutive spins.
        history: Optional :class:`~picker.services.history_service.HistoryService`.
        on_spin_start: Called as ``(spin_result, animation_duration)`` when a
            spin is requested; the presentation starts its animation here.
        on_winner: Called with the winning item after a completed spin.
        on_sequence_end: Called with the stop reason when a run ends.
        spin_pause: Seconds between consecutive spins of a run.
    """

    def __init__(self, store: ListStore, selector: Optional[RandomSelector] = None,
                 scheduler: Optional[CallbackScheduler] = None, history=None,
                 on_spin_start: Optional[Callable[[Dict, float], object]] = None,
                 on_winner: Optional[Callable[[str], object]] = None,
                 on_sequence_end: Optional[Callable[[str], object]] = None,
                 spin_pause: float = DEFAULT_SPIN_PAUSE) -> None:
        self.store = store
        self.selector = selector or RandomSelector()
        self.scheduler = scheduler or CallbackScheduler()
        self.history = history
        self.on_spin_start = on_spin_start
        self.on_winner = on_winner
        self.on_sequence_end = on_sequence_end
        self.spin_pause = spin_pause

        self.winners: List[str] = []
        self.last_winner: Optional[str] = None
        self.stop_reason: Optional[str] = None
        self.last_rejection: Optional[str] = None
        self._pending: Optional[Tuple[str, Tuple[str, ...], int]] = None
        self._spin_result: Optional[Dict] = None
        self._remaining = 0
        self._next_spin_handle: Optional[int] = None
        self._spin_counter = 0

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    @property
    def spin_result(self) -> Optional[Dict]:
        """``{index, target_angle, list_id, spin_id}`` while a spin is in flight, else ``None``."""
        return dict(self._spin_result) if self._spin_result else None

    @property
    def remaining(self) -> int:
        """Spins still to run in the current sequence, excluding one in flight."""
        return self._remaining

    @property
    def sequence_active(self) -> bool:
        return self.in_flight or self._next_spin_handle is not None

    # ------------------------------------------------------------------
    # Spins
    # ------------------------------------------------------------------

    def _rejected(self, reason: str) -> None:
        self.last_rejection = reason
        logger.info("Spin rejected: %s", reason)

    def request_spin(self) -> Optional[Dict]:
        """Start a spin on the active list.

        Returns:
            The spin result ``{index, target_angle, list_id, spin_id}``, or ``None`` if
            a spin is already in flight or queued, or the active list is empty.
        """
        if self.sequence_active:
            logger.debug("Spin already in flight; request ignored")
            return None
        return self._spin()

    def _scheduled_spin(self) -> Optional[Dict]:
        self._next_spin_handle = None
        return self._spin()

    def _spin(self) -> Optional[Dict]:
        active = self.store.active_list
        items = tuple(active['items'])
        if not items:
            self._rejected(STOP_LIST_EMPTY)
            self._end_sequence(STOP_LIST_EMPTY)
            return None

        result = self.selector.select(len(items))
        self._pending = (active['id'], items, result['index'])
        self._spin_counter += 1
        self._spin_result = dict(result, list_id=active['id'], spin_id=self._spin_counter)
        self.last_winner = None
        self.last_rejection = None
        logger.debug("Spin on %s: index %d of %d (%.2f deg)",
                     active['id'], result['index'], len(items), result['target_angle'])
        if self.on_spin_start is not None:
            self.on_spin_start(self.spin_result, self.store.animation_duration)
        return self.spin_result

    def _resolve_winner(self, list_id: str, items: Tuple[str, ...], index: int) -> Optional[str]:
        current = self.store.items(list_id)
        if current is None:
            logger.info("List %s was deleted during the spin; no winner", list_id)
            return None
        winner = items[index]
        if winner not in current:
            logger.info("%r left list %s during the spin; no winner", winner, list_id)
            return None
        return winner

    def complete_spin(self, spin_id: Optional[int] = None) -> Optional[str]:
        """Finish the spin in flight.

        Args:
            spin_id: The ``spin_id`` of the spin being completed.  When given
                and it does not match the spin in flight, the call is ignored.

        Returns:
            The winning item, or ``None`` if nothing was in flight, *spin_id*
            is stale, or the list no longer holds the drawn item.
        """
        if self._pending is None:
            return None
        if spin_id is not None and spin_id != self._spin_result['spin_id']:
            logger.debug("Ignoring completion of stale spin %s", spin_id)
            return None
        list_id, items, index = self._pending
        self._pending = None
        self._spin_result = None

        winner = self._resolve_winner(list_id, items, index)
        if winner is None:
            self._end_sequence(STOP_LIST_CHANGED)
            return None

        self.last_winner = winner
        self.winners.append(winner)
        if self.history is not None:
            self.history.record(winner, self.store.get_list(list_id))
        if self.store.remove_after_pick:
            self.store.remove_item(list_id, winner, index=index)
        if self.on_winner is not None:
            self.on_winner(winner)

        self._continue_sequence()
        return winner

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def start_sequence(self, count: int = 1) -> Optional[Dict]:
        """Run *count* consecutive spins (1 to ``MAX_SEQUENCE``).

        The first spin is requested immediately; each later one is scheduled
        ``spin_pause`` seconds after the previous spin completes.
        """
        if self.sequence_active:
            logger.debug("Sequence already running; request ignored")
            return None
        if not 1 <= count <= MAX_SEQUENCE:
            self._rejected(f"sequence length must be 1-{MAX_SEQUENCE}, got {count}")
            return None
        self.stop_reason = None
        self._remaining = count - 1
        return self.request_spin()

    def _continue_sequence(self) -> None:
        if self._remaining <= 0:
            self._end_sequence(STOP_COMPLETED)
            return
        if not self.store.active_list['items']:
            self._end_sequence(STOP_LIST_EMPTY)
            return
        self._remaining -= 1
        self._next_spin_handle = self.scheduler.call_later(self.spin_pause, self._scheduled_spin)

    def _end_sequence(self, reason: str) -> None:
        remaining = self._remaining
        self._remaining = 0
        self.stop_reason = reason
        if reason != STOP_COMPLETED:
            logger.info("Spin sequence stopped (%s) with %d spins left", reason, remaining)
        if self.on_sequence_end is not None:
            self.on_sequence_end(reason)

    def cancel(self) -> bool:
        """Cancel a scheduled next spin and drop any spin in flight.

        Returns:
            ``True`` if there was anything to cancel.
        """
        if not self.sequence_active:
            return False
        self.scheduler.cancel(self._next_spin_handle)
        self._next_spin_handle = None
        self._pending = None
        self._spin_result = None
        self._end_sequence(STOP_CANCELLED)
        return True
