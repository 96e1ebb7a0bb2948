from typing import Callable, Iterable, List, Optional
from datetime import datetime, time
import logging

from ..schemas import Roll, FilterCriteria
from .stages import parse_stage
from .formatting import as_utc

logger = logging.getLogger(__name__)

RollPredicate = Callable[[Roll], bool]


def _lower_bound(bound) -> datetime:
    if not isinstance(bound, datetime):
        bound = datetime.combine(bound, time.min)
    return as_utc(bound)


def _upper_bound(bound) -> datetime:
    # A plain date end bound includes the whole day
    if not isinstance(bound, datetime):
        bound = datetime.combine(bound, time.max)
    return as_utc(bound)


def searchable_text(roll: Roll) -> str:
    """Lower-cased haystack of the fields covered by the free-text search"""
    return "\n".join([
        roll.roll_number or "",
        roll.production_order_number or "",
        roll.order_number or "",
        roll.display_customer_name or "",
        roll.display_item_name or "",
    ]).casefold()


def build_predicates(criteria: FilterCriteria) -> List[RollPredicate]:
    """
    Turn filter criteria into the list of active predicates.

    Unconstrained dimensions contribute no predicate, so an empty criteria
    yields an empty list and every roll passes.
    """
    predicates: List[RollPredicate] = []

    query = (criteria.query or "").strip().casefold()
    if query:
        predicates.append(lambda roll: query in searchable_text(roll))

    if criteria.stage is not None:
        stage = parse_stage(criteria.stage).value
        predicates.append(lambda roll: roll.stage == stage)

    if criteria.customer_id is not None:
        customer_id = criteria.customer_id
        predicates.append(lambda roll: roll.customer_id == customer_id)

    if criteria.production_order_id is not None:
        production_order_id = criteria.production_order_id
        predicates.append(lambda roll: roll.production_order_id == production_order_id)

    if criteria.start is not None:
        start = _lower_bound(criteria.start)
        predicates.append(lambda roll: as_utc(roll.created_at) >= start)

    if criteria.end is not None:
        end = _upper_bound(criteria.end)
        predicates.append(lambda roll: as_utc(roll.created_at) <= end)

    return predicates


def filter_rolls(rolls: Iterable[Roll], criteria: Optional[FilterCriteria] = None) -> List[Roll]:
    """
    Filter a roll snapshot with every active predicate ANDed together.

    Single pass over the input; the relative order of the rolls is preserved.

    Args:
        rolls: Roll snapshot supplied by the caller
        criteria: Filter criteria; None means unconstrained

    Returns:
        List[Roll]: Rolls satisfying every active predicate

    Raises:
        InvalidStage: if the criteria names a stage outside the pipeline
    """
    predicates = build_predicates(criteria or FilterCriteria())
    result = [roll for roll in rolls if all(predicate(roll) for predicate in predicates)]
    logger.debug(f"Filtered rolls with {len(predicates)} active predicates: {len(result)} matched")
    return result
