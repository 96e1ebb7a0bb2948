from typing import List, Optional, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal
import logging

from ..schemas import (
    Roll, RenderedDocument, PageGeometry, DocumentField, LabelOutcome, RollError,
    HeaderBlock, FieldBlock, FieldRowBlock, TableBlock, SummaryBlock, FooterBlock,
)
from ..exceptions import RollEngineError, EmptySelection, IncompleteRecord
from .aggregation import aggregate_rolls
from .formatting import format_weight, format_timestamp, format_date, parse_weight, PLACEHOLDER
from .locales import resolve_locale, texts
from .stages import stage_label

logger = logging.getLogger(__name__)

# 4in x 6in thermal label
LABEL_PAGE = PageGeometry(name="label-4x6", width_mm=101.6, height_mm=152.4, margin_mm=3.0)
REPORT_PAGE = PageGeometry(name="A4", width_mm=210.0, height_mm=297.0, margin_mm=20.0)


def _field(label: str, value: str) -> DocumentField:
    return DocumentField(label=label, value=value)


def _check_label_fields(roll: Roll) -> None:
    missing = []
    if not (roll.roll_number or "").strip():
        missing.append("roll_number")
    if roll.weight_kg is None or not str(roll.weight_kg).strip():
        missing.append("weight_kg")
    if missing:
        raise IncompleteRecord(roll.roll_id, missing)


def generate_label(roll: Roll, rendered_at: datetime, locale: Optional[str] = None) -> RenderedDocument:
    """
    Lay out the single-roll label.

    Blocks, top to bottom: header with the roll number, customer (optional),
    production order / order number, item (optional), size (optional) / stage,
    highlighted total weight, footer with the print time. Absent optional
    fields are left out instead of rendered empty.

    Args:
        roll: Roll to label
        rendered_at: Print time shown in the footer; fixed input keeps output reproducible
        locale: "ar" or "en"

    Raises:
        IncompleteRecord: roll has no roll_number or no weight_kg
        UnknownStage: roll carries a stage outside the pipeline
    """
    _check_label_fields(roll)
    locale = resolve_locale(locale)
    t = texts(locale)

    blocks = [HeaderBlock(title=t["company_name"], emphasis=roll.roll_number)]

    if roll.display_customer_name:
        blocks.append(FieldBlock(field=_field(t["customer"], roll.display_customer_name)))

    blocks.append(FieldRowBlock(fields=[
        _field(t["production_order"], roll.production_order_number),
        _field(t["order_number"], roll.order_number),
    ]))

    if roll.display_item_name:
        blocks.append(FieldBlock(field=_field(t["item"], roll.display_item_name)))

    size_and_stage = []
    if roll.size_caption:
        size_and_stage.append(_field(t["size"], roll.size_caption))
    size_and_stage.append(_field(t["stage"], stage_label(roll.stage, locale, roll_id=roll.roll_id)))
    blocks.append(FieldRowBlock(fields=size_and_stage))

    blocks.append(FieldBlock(
        field=_field(t["total_weight"], f"{format_weight(roll.weight_kg)} {t['kg']}"),
        highlight=True,
    ))
    blocks.append(FooterBlock(text=f"{t['printed']}: {format_timestamp(rendered_at)}"))

    logger.debug(f"Generated label for roll {roll.roll_id} ({roll.roll_number})")
    return RenderedDocument(
        kind="label",
        title=f"{t['label_title']} - {roll.roll_number}",
        locale=locale,
        rendered_at=rendered_at,
        page=LABEL_PAGE,
        blocks=blocks,
    )


def _label_outcome(roll: Roll, rendered_at: datetime, locale: Optional[str]) -> LabelOutcome:
    try:
        return LabelOutcome(roll_id=roll.roll_id, document=generate_label(roll, rendered_at, locale))
    except RollEngineError as e:
        logger.warning(f"Skipping label for roll {roll.roll_id}: {e.message}")
        return LabelOutcome(roll_id=roll.roll_id, error=RollError.from_exception(roll.roll_id, e))


def generate_labels(
    rolls: Sequence[Roll],
    rendered_at: datetime,
    locale: Optional[str] = None,
    max_workers: int = 4,
) -> List[LabelOutcome]:
    """
    Labels for a batch of rolls, generated across a thread pool.

    One outcome per roll, in input order. A roll that cannot be labelled gets
    its error in place of a document; the other labels are still returned.
    """
    if not rolls:
        return []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        outcomes = list(executor.map(lambda roll: _label_outcome(roll, rendered_at, locale), rolls))
    failed = sum(1 for outcome in outcomes if outcome.error is not None)
    logger.info(f"Generated {len(outcomes) - failed} roll labels, {failed} failed")
    return outcomes


def _report_row(roll: Roll, locale: str) -> List[str]:
    return [
        roll.roll_number or PLACEHOLDER,
        stage_label(roll.stage, locale, roll_id=roll.roll_id),
        roll.production_order_number,
        roll.display_customer_name,
        roll.display_item_name or PLACEHOLDER,
        format_weight(roll.weight_kg),
        format_date(roll.created_at),
    ]


def generate_report(rolls: Sequence[Roll], rendered_at: datetime, locale: Optional[str] = None) -> RenderedDocument:
    """
    Lay out the multi-roll A4 report: title, one table row per roll in input
    order, and a summary (roll count, total weight) over exactly those rows.

    Raises:
        EmptySelection: no rolls were supplied
        UnknownStage: a roll carries a stage outside the pipeline
    """
    if not rolls:
        raise EmptySelection()
    locale = resolve_locale(locale)
    t = texts(locale)

    rows = [_report_row(roll, locale) for roll in rolls]
    stats = aggregate_rolls(rolls)
    # Summed as Decimal so the two-digit rounding matches the per-row values
    total_weight = sum((parse_weight(roll.weight_kg) for roll in rolls), Decimal("0"))

    blocks = [
        HeaderBlock(
            title=t["company_name"],
            emphasis=t["report_title"],
            subtitle=f"{t['date']}: {format_timestamp(rendered_at)}",
        ),
        TableBlock(
            columns=[
                t["roll_number"], t["stage"], t["production_order"], t["customer"],
                t["item"], t["weight_kg"], t["date"],
            ],
            rows=rows,
        ),
        SummaryBlock(entries=[
            _field(t["roll_count"], str(stats.total)),
            _field(t["report_total_weight"], f"{format_weight(total_weight)} {t['kg']}"),
        ]),
    ]

    logger.info(f"Generated report over {stats.total} rolls, total weight {stats.total_weight_kg:.2f} kg")
    return RenderedDocument(
        kind="report",
        title=t["report_title"],
        locale=locale,
        rendered_at=rendered_at,
        page=REPORT_PAGE,
        blocks=blocks,
    )
