from typing import Any, Dict, Iterable, List, Optional
import logging

from ..schemas import Roll, RollStage, StageDisplay, TimelineEvent
from ..exceptions import InvalidStage, UnknownStage
from .formatting import as_utc, parse_weight
from .locales import resolve_locale

logger = logging.getLogger(__name__)

# ============================================================================
# STAGE TABLES - every table is keyed by all five stages
# ============================================================================

STAGE_ORDER: List[RollStage] = list(RollStage)

STAGE_LABELS: Dict[str, Dict[RollStage, str]] = {
    "ar": {
        RollStage.FILM: "فيلم",
        RollStage.PRINTING: "طباعة",
        RollStage.CUTTING: "تقطيع",
        RollStage.DONE: "منتهي",
        RollStage.ARCHIVED: "مؤرشف",
    },
    "en": {
        RollStage.FILM: "Film",
        RollStage.PRINTING: "Printing",
        RollStage.CUTTING: "Cutting",
        RollStage.DONE: "Done",
        RollStage.ARCHIVED: "Archived",
    },
}

STAGE_ICONS: Dict[RollStage, str] = {
    RollStage.FILM: "film",
    RollStage.PRINTING: "printer",
    RollStage.CUTTING: "scissors",
    RollStage.DONE: "check-circle",
    RollStage.ARCHIVED: "package",
}

STAGE_BADGE_VARIANTS: Dict[RollStage, str] = {
    RollStage.FILM: "secondary",
    RollStage.PRINTING: "default",
    RollStage.CUTTING: "outline",
    RollStage.DONE: "success",
    RollStage.ARCHIVED: "secondary",
}

# Forward-only transitions; archived is terminal
STAGE_TRANSITIONS: Dict[RollStage, List[RollStage]] = {
    RollStage.FILM: [RollStage.PRINTING],
    RollStage.PRINTING: [RollStage.CUTTING],
    RollStage.CUTTING: [RollStage.DONE],
    RollStage.DONE: [RollStage.ARCHIVED],
    RollStage.ARCHIVED: [],
}

for _table in (STAGE_ICONS, STAGE_BADGE_VARIANTS, STAGE_TRANSITIONS, *STAGE_LABELS.values()):
    assert set(_table) == set(RollStage), "stage table is missing a stage"


def parse_stage(value: Any) -> RollStage:
    """
    Convert a raw stage value into a RollStage.

    Raises:
        InvalidStage: if the value is not one of the five pipeline stages
    """
    if isinstance(value, RollStage):
        return value
    try:
        return RollStage(value)
    except ValueError:
        raise InvalidStage(value) from None


def stage_label(stage: Any, locale: Optional[str] = None, roll_id: Optional[Any] = None) -> str:
    """
    Display name of a stage for the given locale.

    Raises:
        UnknownStage: if the stage is not one of the five pipeline stages
    """
    try:
        known = parse_stage(stage)
    except InvalidStage:
        raise UnknownStage(stage, roll_id=roll_id) from None
    return STAGE_LABELS[resolve_locale(locale)][known]


def stage_rank(stage: Any) -> int:
    """Position in the pipeline; unknown stages rank after archived"""
    try:
        return STAGE_ORDER.index(parse_stage(stage))
    except InvalidStage:
        return len(STAGE_ORDER)


def stage_display(stage: Any, locale: Optional[str] = None) -> StageDisplay:
    known = parse_stage(stage)
    return StageDisplay(
        stage=known,
        rank=STAGE_ORDER.index(known),
        label=stage_label(known, locale),
        icon=STAGE_ICONS[known],
        badge_variant=STAGE_BADGE_VARIANTS[known],
    )


def stage_display_table(locale: Optional[str] = None) -> List[StageDisplay]:
    return [stage_display(stage, locale) for stage in STAGE_ORDER]


def next_stages(stage: Any) -> List[RollStage]:
    return list(STAGE_TRANSITIONS[parse_stage(stage)])


def is_valid_transition(current: Any, new: Any) -> bool:
    """
    Check a stage transition against the forward-only pipeline.

    Args:
        current: Current stage of the roll
        new: Desired next stage

    Returns:
        bool: True if the transition is allowed, False otherwise
    """
    return parse_stage(new) in STAGE_TRANSITIONS[parse_stage(current)]

# ============================================================================
# SORTING & TIMELINE
# ============================================================================

SORT_KEYS = {
    "stage": lambda roll: stage_rank(roll.stage),
    "created_at": lambda roll: as_utc(roll.created_at),
    "roll_number": lambda roll: roll.roll_number or "",
    "weight": lambda roll: parse_weight(roll.weight_kg),
}


def sort_rolls(rolls: Iterable[Roll], by: str = "stage", descending: bool = False) -> List[Roll]:
    """
    Stable sort of rolls by stage order, creation time, roll number or weight.

    Rolls with equal keys keep their input order.
    """
    if by not in SORT_KEYS:
        raise ValueError(f"Invalid sort key '{by}'. Must be one of: {list(SORT_KEYS)}")
    return sorted(rolls, key=SORT_KEYS[by], reverse=descending)


def roll_timeline(roll: Roll) -> List[TimelineEvent]:
    """Stage events of a roll in pipeline order, skipping the ones not reached yet"""
    events = [
        TimelineEvent(
            stage=RollStage.FILM,
            event="created",
            timestamp=roll.created_at,
            operator_name=roll.created_by_name,
            machine_name=roll.film_machine_name,
        )
    ]
    if roll.printed_at:
        events.append(TimelineEvent(
            stage=RollStage.PRINTING,
            event="printed",
            timestamp=roll.printed_at,
            operator_name=roll.printed_by_name,
            machine_name=roll.printing_machine_name,
        ))
    if roll.cut_completed_at:
        if not roll.printed_at:
            logger.warning(f"Roll {roll.roll_id} has cut_completed_at without printed_at")
        events.append(TimelineEvent(
            stage=RollStage.DONE,
            event="cut_completed",
            timestamp=roll.cut_completed_at,
            operator_name=roll.cut_by_name,
            machine_name=roll.cutting_machine_name,
        ))
    return events
