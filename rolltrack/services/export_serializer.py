from typing import Dict, Iterable, List, Optional, Tuple
import logging

from ..schemas import Roll, ExportRow, ExportResult, RollError
from ..exceptions import RollEngineError
from .formatting import format_weight, format_optional_weight, format_export_timestamp, or_placeholder
from .locales import resolve_locale, texts
from .stages import stage_label

logger = logging.getLogger(__name__)

# (column key, header text key), in export order
EXPORT_COLUMNS: List[Tuple[str, str]] = [
    ("roll_number", "roll_number"),
    ("production_order_number", "production_order"),
    ("order_number", "order_number"),
    ("customer", "customer"),
    ("item", "item"),
    ("size", "size"),
    ("stage", "stage"),
    ("weight_kg", "weight_kg"),
    ("created_by", "created_by"),
    ("printed_by", "printed_by"),
    ("cut_by", "cut_by"),
    ("cut_weight_kg", "cut_weight"),
    ("waste_kg", "waste"),
    ("created_at", "created_at"),
]


def export_headers(locale: Optional[str] = None) -> Dict[str, str]:
    """Column key -> localized header, in export order"""
    t = texts(locale)
    return {key: t[text_key] for key, text_key in EXPORT_COLUMNS}


def roll_to_row(roll: Roll, locale: Optional[str] = None) -> ExportRow:
    """
    Raises:
        UnknownStage: roll carries a stage outside the pipeline
    """
    locale = resolve_locale(locale)
    return {
        "roll_number": or_placeholder(roll.roll_number),
        "production_order_number": or_placeholder(roll.production_order_number),
        "order_number": or_placeholder(roll.order_number),
        "customer": or_placeholder(roll.display_customer_name),
        "item": or_placeholder(roll.display_item_name),
        "size": or_placeholder(roll.size_caption),
        "stage": stage_label(roll.stage, locale, roll_id=roll.roll_id),
        "weight_kg": format_weight(roll.weight_kg),
        "created_by": or_placeholder(roll.created_by_name),
        "printed_by": or_placeholder(roll.printed_by_name),
        "cut_by": or_placeholder(roll.cut_by_name),
        "cut_weight_kg": format_optional_weight(roll.cut_weight_kg),
        "waste_kg": format_optional_weight(roll.waste_kg),
        "created_at": format_export_timestamp(roll.created_at),
    }


def to_rows(rolls: Iterable[Roll], locale: Optional[str] = None) -> List[ExportRow]:
    """Spreadsheet-style rows for the rolls, in input order; the first failing roll raises"""
    rows = [roll_to_row(roll, locale) for roll in rolls]
    logger.debug(f"Serialized {len(rows)} rolls for export")
    return rows


def export_rows(rolls: Iterable[Roll], locale: Optional[str] = None) -> ExportResult:
    """
    Rows for every roll that can be serialized, plus one error per roll that
    cannot. A failing roll only loses its own row.
    """
    rows, errors = [], []
    for roll in rolls:
        try:
            rows.append(roll_to_row(roll, locale))
        except RollEngineError as e:
            logger.warning(f"Skipping export row for roll {roll.roll_id}: {e.message}")
            errors.append(RollError.from_exception(roll.roll_id, e))
    logger.debug(f"Serialized {len(rows)} rolls for export, {len(errors)} skipped")
    return ExportResult(rows=rows, errors=errors)
