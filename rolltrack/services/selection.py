from typing import FrozenSet, Iterable, List, Set, Union
import threading
import logging

from ..schemas import Roll

logger = logging.getLogger(__name__)

RollOrId = Union[Roll, int]


def _ids(view: Iterable[RollOrId]) -> List[int]:
    return [item.roll_id if isinstance(item, Roll) else item for item in view]


class SelectionManager:
    """
    Tracks the roll IDs chosen for batch document generation.

    The selection is meant to be a subset of the latest filtered view, but this
    is not enforced: an ID that has since been filtered out stays in the set
    and simply has no effect. Callers trim it with ``retain`` after a filter
    change. Every operation holds a single lock, so concurrent callers see
    each mutation applied atomically.
    """

    def __init__(self):
        self._selected: Set[int] = set()
        self._lock = threading.Lock()

    def toggle(self, roll_id: int) -> bool:
        """Flip one roll in or out of the selection; returns the new state"""
        with self._lock:
            if roll_id in self._selected:
                self._selected.discard(roll_id)
                return False
            self._selected.add(roll_id)
            return True

    def select_all(self, view: Iterable[RollOrId]) -> bool:
        """
        Select every roll of the view, or clear if that is already the selection.

        Returns:
            bool: True if the view is now selected, False if the selection was cleared
        """
        view_ids = set(_ids(view))
        with self._lock:
            if self._selected == view_ids:
                self._selected.clear()
                return False
            self._selected = view_ids
            return True

    def clear(self) -> None:
        with self._lock:
            self._selected.clear()

    def is_selected(self, roll_id: int) -> bool:
        with self._lock:
            return roll_id in self._selected

    def retain(self, view: Iterable[RollOrId]) -> int:
        """Drop IDs that are not in the view; returns how many were dropped"""
        view_ids = set(_ids(view))
        with self._lock:
            stale = self._selected - view_ids
            self._selected -= stale
        if stale:
            logger.info(f"Dropped {len(stale)} stale roll(s) from selection")
        return len(stale)

    def selected_ids(self) -> FrozenSet[int]:
        with self._lock:
            return frozenset(self._selected)

    def selected_rolls(self, view: Iterable[Roll]) -> List[Roll]:
        """Selected rolls of the view, in view order"""
        selected = self.selected_ids()
        return [roll for roll in view if roll.roll_id in selected]

    def __len__(self) -> int:
        with self._lock:
            return len(self._selected)
