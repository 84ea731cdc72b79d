import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.job import Job, JobStatus
from app.schemas.map import (
    DISTANCE_UNLIMITED_KM,
    FilterState,
    JobPin,
    MapConfigResponse,
    MapJobsResponse,
    MapPinResponse,
    MarkerStyleResponse,
    ViewportResponse,
)
from app.services.geo import DEFAULT_CENTER, DEFAULT_ZOOM, MAX_FIT_ZOOM, fit_bounds
from app.services.map_filters import apply_filters, filter_listings
from app.services.markers import marker_style

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/map", tags=["map"])

MAP_JOB_LIMIT = 500


@router.get("/jobs", response_model=MapJobsResponse)
async def map_jobs(
    show_urgent: bool = False,
    show_verified_pay: bool = False,
    show_neighbors: bool = False,
    min_pay_rate: float = Query(0.0, ge=0),
    max_distance_km: float = Query(DISTANCE_UNLIMITED_KM, gt=0),
    categories: list[str] = Query([]),
    show_accepted: bool = False,
    show_suggested: bool = False,
    show_newest: bool = False,
    user_lat: float | None = Query(None, ge=-90, le=90),
    user_lng: float | None = Query(None, ge=-180, le=180),
    selected_id: uuid.UUID | None = None,
    width: int = Query(640, ge=64, le=4096),
    height: int = Query(480, ge=64, le=4096),
    db: AsyncSession = Depends(get_db),
):
    filters = FilterState(
        show_urgent=show_urgent,
        show_verified_pay=show_verified_pay,
        show_neighbors=show_neighbors,
        min_pay_rate=min_pay_rate,
        max_distance_km=max_distance_km,
        categories=set(categories),
        show_accepted=show_accepted,
        show_suggested=show_suggested,
        show_newest=show_newest,
    )

    result = await db.execute(
        select(Job)
        .where(Job.status != JobStatus.CANCELLED)
        .order_by(Job.created_at.desc())
        .limit(MAP_JOB_LIMIT)
    )
    source = [JobPin.model_validate(job) for job in result.scalars().all()]

    user_location = (user_lat, user_lng) if user_lat is not None and user_lng is not None else None
    visible = filter_listings(source, filters, user_location)
    fallback_applied = bool(source) and not filters.is_default and not apply_filters(source, filters, user_location)

    pins = []
    for job in visible:
        selected = job.id == selected_id
        style = marker_style(job.status, job.urgency_level, selected=selected)
        pins.append(
            MapPinResponse(
                job=job,
                marker=MarkerStyleResponse(
                    fill_color=style.fill_color,
                    scale=style.scale,
                    stroke_color=style.stroke_color,
                    stroke_weight=style.stroke_weight,
                    pulse=style.pulse,
                ),
                selected=selected,
            )
        )

    viewport = fit_bounds([(job.lat, job.lng) for job in visible], width_px=width, height_px=height)
    return MapJobsResponse(
        pins=pins,
        total=len(pins),
        source_total=len(source),
        fallback_applied=fallback_applied,
        viewport=ViewportResponse(center_lat=viewport.center_lat, center_lng=viewport.center_lng, zoom=viewport.zoom),
    )


@router.get("/config", response_model=MapConfigResponse)
async def map_config():
    default_center = ViewportResponse(center_lat=DEFAULT_CENTER[0], center_lng=DEFAULT_CENTER[1], zoom=DEFAULT_ZOOM)
    if not settings.google_maps_api_key:
        logger.warning("Google Maps API key not configured")
        return MapConfigResponse(
            status="error",
            message="Map is unavailable: the maps API key is not configured.",
            default_center=default_center,
            max_zoom=MAX_FIT_ZOOM,
        )
    return MapConfigResponse(
        status="ready",
        api_key=settings.google_maps_api_key,
        default_center=default_center,
        max_zoom=MAX_FIT_ZOOM,
    )
