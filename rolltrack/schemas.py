from typing import List, Optional, Dict, Union, Literal, Annotated
from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from .exceptions import InvalidStage, RollEngineError

# ============================================================================
# STAGE ENUM - Pipeline order is the declaration order
# ============================================================================

class RollStage(str, Enum):
    FILM = "film"
    PRINTING = "printing"
    CUTTING = "cutting"
    DONE = "done"
    ARCHIVED = "archived"

ALL_FILTER = "all"

# ============================================================================
# ROLL SCHEMAS - Snapshot records supplied by the caller
# ============================================================================

class Roll(BaseModel):
    """One physical production roll with its denormalized associations."""
    roll_id: int = Field(..., description="Unique, immutable roll identifier")
    roll_number: Optional[str] = Field(None, description="Human-readable roll number (e.g., R-001)")
    roll_seq: Optional[int] = Field(None, description="Position within its production order")
    stage: str = Field(..., description="film, printing, cutting, done or archived")

    # Weights are kept as decimal strings; parsing is lenient
    weight_kg: Optional[str] = None
    cut_weight_kg: Optional[str] = None
    waste_kg: Optional[str] = None

    created_at: datetime
    printed_at: Optional[datetime] = None
    cut_completed_at: Optional[datetime] = None

    production_order_id: int
    production_order_number: str
    order_id: int
    order_number: str
    customer_id: str
    customer_name: str
    customer_name_localized: Optional[str] = None
    item_name: Optional[str] = None
    item_name_localized: Optional[str] = None
    size_caption: Optional[str] = None
    color: Optional[str] = None
    punching: Optional[str] = None

    # Machine and operator attribution per stage
    film_machine_name: Optional[str] = None
    printing_machine_name: Optional[str] = None
    cutting_machine_name: Optional[str] = None
    created_by_name: Optional[str] = None
    printed_by_name: Optional[str] = None
    cut_by_name: Optional[str] = None

    @field_validator("weight_kg", "cut_weight_kg", "waste_kg", mode="before")
    @classmethod
    def coerce_weight(cls, v):
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def display_customer_name(self) -> str:
        return self.customer_name_localized or self.customer_name

    @property
    def display_item_name(self) -> Optional[str]:
        return self.item_name_localized or self.item_name

    class Config:
        frozen = True


class FilterCriteria(BaseModel):
    """Immutable description of a filtered view. ``None`` means unconstrained."""
    query: Optional[str] = Field(None, description="Free-text search")
    stage: Optional[RollStage] = Field(None, description="Stage or 'all'")
    customer_id: Optional[str] = Field(None, description="Customer ID or 'all'")
    production_order_id: Optional[int] = Field(None, description="Production order ID or 'all'")
    start: Optional[Union[datetime, date]] = Field(None, description="Inclusive lower bound on created_at")
    end: Optional[Union[datetime, date]] = Field(None, description="Inclusive upper bound on created_at")

    @field_validator("stage", mode="before")
    @classmethod
    def validate_stage(cls, v):
        if v is None or v == "" or v == ALL_FILTER:
            return None
        try:
            return RollStage(v)
        except ValueError:
            raise InvalidStage(v) from None

    @field_validator("customer_id", "production_order_id", mode="before")
    @classmethod
    def normalize_all(cls, v):
        if v is None or v == "" or v == ALL_FILTER:
            return None
        return v

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_bound(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            # A bare YYYY-MM-DD stays a date so that an end bound covers the whole day
            if len(v) == 10:
                return date.fromisoformat(v)
            return datetime.fromisoformat(v)
        return v

    class Config:
        frozen = True


class StageStats(BaseModel):
    """Per-stage counts and total weight of a filtered view"""
    counts: Dict[str, int] = Field(..., description="Roll count per stage, all five stages present")
    total: int = Field(..., description="Number of rolls in the view")
    total_weight_kg: float = Field(..., description="Sum of weight_kg over the view")


class StageDisplay(BaseModel):
    stage: RollStage
    rank: int
    label: str
    icon: str
    badge_variant: str


class TimelineEvent(BaseModel):
    """A stage event that happened to a roll"""
    stage: RollStage
    event: str
    timestamp: datetime
    operator_name: Optional[str] = None
    machine_name: Optional[str] = None

# ============================================================================
# DOCUMENT SCHEMAS - Format-agnostic content block tree
# ============================================================================

class PageGeometry(BaseModel):
    name: str
    width_mm: float
    height_mm: float
    margin_mm: float
    orientation: Literal["portrait", "landscape"] = "portrait"


class DocumentField(BaseModel):
    label: str
    value: str


class HeaderBlock(BaseModel):
    kind: Literal["header"] = "header"
    title: str
    subtitle: Optional[str] = None
    emphasis: Optional[str] = Field(None, description="Large highlighted text, e.g. the roll number")


class FieldBlock(BaseModel):
    """Full-width labelled value"""
    kind: Literal["field"] = "field"
    field: DocumentField
    highlight: bool = False


class FieldRowBlock(BaseModel):
    """Side-by-side labelled values; holds only the fields that are present"""
    kind: Literal["field_row"] = "field_row"
    fields: List[DocumentField]


class TableBlock(BaseModel):
    kind: Literal["table"] = "table"
    columns: List[str]
    rows: List[List[str]]


class SummaryBlock(BaseModel):
    kind: Literal["summary"] = "summary"
    entries: List[DocumentField]


class FooterBlock(BaseModel):
    kind: Literal["footer"] = "footer"
    text: str


ContentBlock = Annotated[
    Union[HeaderBlock, FieldBlock, FieldRowBlock, TableBlock, SummaryBlock, FooterBlock],
    Field(discriminator="kind"),
]


class RenderedDocument(BaseModel):
    """Fully laid out label or report, ready for a renderer"""
    kind: Literal["label", "report"]
    title: str
    locale: str
    rendered_at: datetime
    page: PageGeometry
    blocks: List[ContentBlock]

# Export rows map column key -> formatted cell, in column order
ExportRow = Dict[str, str]

# ============================================================================
# BATCH OUTCOME SCHEMAS - One failing roll never sinks the rest
# ============================================================================

class RollError(BaseModel):
    """Engine failure scoped to a single roll of a batch"""
    roll_id: int
    error: str = Field(..., description="Error kind, e.g. IncompleteRecord or UnknownStage")
    detail: str

    @classmethod
    def from_exception(cls, roll_id: int, exc: RollEngineError) -> "RollError":
        return cls(roll_id=roll_id, error=type(exc).__name__, detail=exc.message)


class LabelOutcome(BaseModel):
    """Label of one roll in a batch: either the document or the error"""
    roll_id: int
    document: Optional[RenderedDocument] = None
    error: Optional[RollError] = None


class ExportResult(BaseModel):
    rows: List[ExportRow]
    errors: List[RollError] = []

# ============================================================================
# REQUEST / RESPONSE SCHEMAS - HTTP shell
# ============================================================================

class RollFilterRequest(BaseModel):
    rolls: List[Roll]
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort_by: Optional[str] = Field(None, description="stage, created_at, roll_number or weight")
    descending: bool = False


class FilteredRollsResponse(BaseModel):
    rolls: List[Roll]
    stats: StageStats


class RollsRequest(BaseModel):
    rolls: List[Roll]
    locale: Optional[str] = None


class LabelRequest(BaseModel):
    roll: Roll
    locale: Optional[str] = None


class ReportRequest(BaseModel):
    """Report over the supplied rolls; with ``selection_id`` only the selected ones are kept"""
    rolls: List[Roll]
    selection_id: Optional[str] = None
    locale: Optional[str] = None


class ExportRequest(BaseModel):
    rolls: List[Roll]
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    locale: Optional[str] = None


class SelectionViewRequest(BaseModel):
    roll_ids: List[int] = Field(..., description="IDs of the current filtered view")


class SelectionResponse(BaseModel):
    selection_id: str
    selected_ids: List[int]
    count: int
