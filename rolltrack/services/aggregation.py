from typing import Dict, Iterable
from decimal import Decimal
import logging

from ..schemas import Roll, RollStage, StageStats
from .formatting import parse_weight

logger = logging.getLogger(__name__)


def aggregate_rolls(rolls: Iterable[Roll]) -> StageStats:
    """
    Per-stage counts and total weight of a view, in one pass.

    Missing or unparsable weights count as 0. A roll with an unrecognised stage
    is counted in the total but in none of the stage buckets.
    """
    counts: Dict[str, int] = {stage.value: 0 for stage in RollStage}
    total = 0
    total_weight = Decimal("0")

    for roll in rolls:
        total += 1
        if roll.stage in counts:
            counts[roll.stage] += 1
        else:
            logger.warning(f"Roll {roll.roll_id} has unrecognised stage '{roll.stage}', not counted per stage")
        total_weight += parse_weight(roll.weight_kg)

    return StageStats(counts=counts, total=total, total_weight_kg=float(total_weight))
