from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from typing import List, Optional
from datetime import datetime
import csv
import io
from urllib.parse import quote
import logging

from .base import get_selection_manager, find_selection_manager, drop_selection_manager, get_render_time
from .. import config, schemas
from ..exceptions import RollEngineError
from ..services.selection import SelectionManager
from ..services.roll_filter import filter_rolls
from ..services.aggregation import aggregate_rolls
from ..services.stages import sort_rolls, stage_display_table, roll_timeline
from ..services.document_generator import generate_label, generate_labels, generate_report
from ..services.pdf_renderer import render_pdf
from ..services.export_serializer import export_rows, export_headers

router = APIRouter()
logger = logging.getLogger(__name__)


def _locale(requested: Optional[str]) -> str:
    return requested or config.DEFAULT_LOCALE


def _content_disposition(filename: str) -> str:
    # Header values must be latin-1; non-ASCII names go in the RFC 5987 form
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": _content_disposition(filename)}
    )

# ============================================================================
# FILTER & STATS ENDPOINTS
# ============================================================================

@router.post("/rolls/filter", response_model=schemas.FilteredRollsResponse, tags=["Roll Tracking"])
def filter_roll_snapshot(request: schemas.RollFilterRequest):
    """Filter a roll snapshot and return the view with its stage statistics"""
    try:
        rolls = filter_rolls(request.rolls, request.criteria)
        if request.sort_by:
            rolls = sort_rolls(rolls, by=request.sort_by, descending=request.descending)
        stats = aggregate_rolls(rolls)
        logger.info(f"Filtered {len(request.rolls)} rolls down to {stats.total}")
        return schemas.FilteredRollsResponse(rolls=rolls, stats=stats)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/rolls/stats", response_model=schemas.StageStats, tags=["Roll Tracking"])
def get_roll_stats(request: schemas.RollsRequest):
    """Per-stage counts and total weight of the supplied rolls"""
    return aggregate_rolls(request.rolls)


@router.get("/rolls/stages", response_model=List[schemas.StageDisplay], tags=["Roll Tracking"])
def get_stage_table(locale: Optional[str] = Query(None, description="ar or en")):
    """Stage labels, icons and badge variants in pipeline order"""
    return stage_display_table(_locale(locale))


@router.post("/rolls/timeline", response_model=List[schemas.TimelineEvent], tags=["Roll Tracking"])
def get_roll_timeline(roll: schemas.Roll):
    """Stage events of a single roll with operator and machine attribution"""
    return roll_timeline(roll)

# ============================================================================
# DOCUMENT ENDPOINTS
# ============================================================================

@router.post("/rolls/label", response_model=schemas.RenderedDocument, tags=["Roll Documents"])
def create_roll_label(
    request: schemas.LabelRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """Lay out the 4x6 label of one roll"""
    return generate_label(request.roll, rendered_at, _locale(request.locale))


@router.post("/rolls/label/pdf", tags=["Roll Documents"])
def create_roll_label_pdf(
    request: schemas.LabelRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """Label of one roll as PDF"""
    try:
        document = generate_label(request.roll, rendered_at, _locale(request.locale))
        return _pdf_response(render_pdf(document), f"roll-label-{request.roll.roll_number}.pdf")
    except (HTTPException, RollEngineError):
        raise
    except Exception as e:
        logger.error(f"Error generating label PDF for roll {request.roll.roll_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/rolls/labels", response_model=List[schemas.LabelOutcome], tags=["Roll Documents"])
def create_roll_labels(
    request: schemas.RollsRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """Labels for a batch of rolls, in input order; failing rolls carry their error instead"""
    return generate_labels(request.rolls, rendered_at, _locale(request.locale), max_workers=config.RENDER_WORKERS)


def _report_rolls(request: schemas.ReportRequest) -> List[schemas.Roll]:
    if request.selection_id is None:
        return request.rolls
    manager = find_selection_manager(request.selection_id)
    if manager is None:
        return []
    return manager.selected_rolls(request.rolls)


@router.post("/rolls/report", response_model=schemas.RenderedDocument, tags=["Roll Documents"])
def create_rolls_report(
    request: schemas.ReportRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """Lay out the A4 report; restricted to the selection when selection_id is given"""
    return generate_report(_report_rolls(request), rendered_at, _locale(request.locale))


@router.post("/rolls/report/pdf", tags=["Roll Documents"])
def create_rolls_report_pdf(
    request: schemas.ReportRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """A4 report as PDF"""
    try:
        document = generate_report(_report_rolls(request), rendered_at, _locale(request.locale))
        return _pdf_response(render_pdf(document), f"rolls-report-{rendered_at.strftime('%Y%m%d_%H%M%S')}.pdf")
    except (HTTPException, RollEngineError):
        raise
    except Exception as e:
        logger.error(f"Error generating report PDF: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ============================================================================
# EXPORT ENDPOINT
# ============================================================================

@router.post("/rolls/export", tags=["Roll Export"])
def export_rolls_csv(
    request: schemas.ExportRequest,
    rendered_at: datetime = Depends(get_render_time)
):
    """Export the filtered rolls to CSV; rolls that cannot be serialized are listed in X-Skipped-Rolls"""
    try:
        locale = _locale(request.locale)
        result = export_rows(filter_rolls(request.rolls, request.criteria), locale)
        if not result.rows:
            if result.errors:
                raise HTTPException(status_code=422, detail=[error.model_dump() for error in result.errors])
            raise HTTPException(status_code=404, detail="No rolls to export")

        headers = export_headers(locale)
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(list(headers.values()))
        writer.writerows([[row[key] for key in headers] for row in result.rows])

        csv_content = output.getvalue()
        output.close()
        logger.info(f"Exported {len(result.rows)} rolls to CSV, skipped {len(result.errors)}")

        response_headers = {
            "Content-Disposition": _content_disposition(f"rolls-{rendered_at.strftime('%Y-%m-%d')}.csv")
        }
        if result.errors:
            response_headers["X-Skipped-Rolls"] = ",".join(str(error.roll_id) for error in result.errors)

        return Response(
            content=csv_content,
            media_type="text/csv",
            headers=response_headers
        )
    except (HTTPException, RollEngineError):
        raise
    except Exception as e:
        logger.error(f"Error exporting rolls: {e}")
        raise HTTPException(status_code=500, detail=str(e))

# ============================================================================
# SELECTION ENDPOINTS
# ============================================================================

def _selection_response(selection_id: str, manager: Optional[SelectionManager]) -> schemas.SelectionResponse:
    selected = sorted(manager.selected_ids()) if manager is not None else []
    return schemas.SelectionResponse(selection_id=selection_id, selected_ids=selected, count=len(selected))


@router.get("/rolls/selection/{selection_id}", response_model=schemas.SelectionResponse, tags=["Roll Selection"])
def get_selection(selection_id: str):
    """Current selection; an unknown ID reads as empty"""
    return _selection_response(selection_id, find_selection_manager(selection_id))


@router.post("/rolls/selection/{selection_id}/toggle/{roll_id}", response_model=schemas.SelectionResponse, tags=["Roll Selection"])
def toggle_roll_selection(selection_id: str, roll_id: int):
    manager = get_selection_manager(selection_id)
    manager.toggle(roll_id)
    return _selection_response(selection_id, manager)


@router.post("/rolls/selection/{selection_id}/select-all", response_model=schemas.SelectionResponse, tags=["Roll Selection"])
def toggle_select_all(selection_id: str, request: schemas.SelectionViewRequest):
    """Select the whole view, or clear if the whole view is already selected"""
    manager = get_selection_manager(selection_id)
    manager.select_all(request.roll_ids)
    return _selection_response(selection_id, manager)


@router.post("/rolls/selection/{selection_id}/retain", response_model=schemas.SelectionResponse, tags=["Roll Selection"])
def retain_selection(selection_id: str, request: schemas.SelectionViewRequest):
    """Drop selected IDs that are no longer in the view"""
    manager = get_selection_manager(selection_id)
    manager.retain(request.roll_ids)
    return _selection_response(selection_id, manager)


@router.delete("/rolls/selection/{selection_id}", response_model=schemas.SelectionResponse, tags=["Roll Selection"])
def clear_selection(selection_id: str):
    """Clear the selection and forget its ID"""
    drop_selection_manager(selection_id)
    return _selection_response(selection_id, None)
