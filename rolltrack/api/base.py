from typing import Dict, Optional
from datetime import datetime
from zoneinfo import ZoneInfo
import threading
import logging

from .. import config
from ..services.selection import SelectionManager

logger = logging.getLogger(__name__)

# In-process selections, one per client-chosen selection ID, oldest first
_selections: Dict[str, SelectionManager] = {}
_selections_lock = threading.Lock()


def get_selection_manager(selection_id: str) -> SelectionManager:
    """Get the selection for an ID, creating an empty one on first use"""
    with _selections_lock:
        manager = _selections.get(selection_id)
        if manager is None:
            while _selections and len(_selections) >= config.SELECTION_LIMIT:
                evicted = next(iter(_selections))
                del _selections[evicted]
                logger.warning(f"Selection limit {config.SELECTION_LIMIT} reached, evicted {evicted}")
            manager = SelectionManager()
            _selections[selection_id] = manager
            logger.info(f"Created selection {selection_id}")
        return manager


def find_selection_manager(selection_id: str) -> Optional[SelectionManager]:
    """Existing selection for an ID, or None; never creates one"""
    with _selections_lock:
        return _selections.get(selection_id)


def drop_selection_manager(selection_id: str) -> Optional[SelectionManager]:
    with _selections_lock:
        manager = _selections.pop(selection_id, None)
    if manager is not None:
        logger.info(f"Dropped selection {selection_id}")
    return manager


def get_render_time() -> datetime:
    """Print time stamped on generated documents"""
    return datetime.now(ZoneInfo(config.REPORT_TIMEZONE))
