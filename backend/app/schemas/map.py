import uuid
from datetime import datetime

from pydantic import BaseModel, Field

DISTANCE_UNLIMITED_KM = 100.0
ALL_CATEGORIES = "all"


class FilterState(BaseModel):
    show_urgent: bool = False
    show_verified_pay: bool = False
    show_neighbors: bool = False
    min_pay_rate: float = Field(0.0, ge=0)
    max_distance_km: float = Field(DISTANCE_UNLIMITED_KM, gt=0)
    categories: set[str] = set()
    # Views
    show_accepted: bool = False
    show_suggested: bool = False
    show_newest: bool = False

    @property
    def category_filter_active(self) -> bool:
        return bool(self.categories) and ALL_CATEGORIES not in self.categories

    @property
    def is_default(self) -> bool:
        return not (
            self.show_urgent
            or self.show_verified_pay
            or self.show_neighbors
            or self.min_pay_rate > 0
            or self.max_distance_km < DISTANCE_UNLIMITED_KM
            or self.category_filter_active
            or self.show_accepted
            or self.show_suggested
            or self.show_newest
        )


class JobPin(BaseModel):
    """Read-only projection of a job as consumed by the map."""

    id: uuid.UUID
    title: str
    status: str
    lat: float
    lng: float
    city: str = ""
    category_id: str
    subcategory: str = ""
    urgency_level: str
    budget_min: float | None = None
    budget_max: float | None = None
    is_verified_payment: bool = False
    is_neighbor_posted: bool = False
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}


class MarkerStyleResponse(BaseModel):
    fill_color: str
    scale: int
    stroke_color: str
    stroke_weight: int
    pulse: bool


class MapPinResponse(BaseModel):
    job: JobPin
    marker: MarkerStyleResponse
    selected: bool = False


class ViewportResponse(BaseModel):
    center_lat: float
    center_lng: float
    zoom: int


class MapJobsResponse(BaseModel):
    pins: list[MapPinResponse]
    total: int
    source_total: int
    fallback_applied: bool
    viewport: ViewportResponse


class MapConfigResponse(BaseModel):
    status: str  # ready, error
    message: str = ""
    api_key: str | None = None
    default_center: ViewportResponse
    max_zoom: int
