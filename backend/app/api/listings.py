import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import asc, desc, func as sa_func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.listing import ListingType, MarketplaceListing
from app.schemas.listing import ListingDetailResponse, ListingListResponse
from app.services.listings import compose_listing_detail, summarize

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


@router.get("/listings", response_model=ListingListResponse)
async def list_listings(
    search: str | None = None,
    listing_type: ListingType | None = None,
    category_id: str | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    city: str | None = None,
    sort_by: str = Query("created_at", pattern="^(created_at|price|title)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    query = select(MarketplaceListing).where(MarketplaceListing.is_active.is_(True))

    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                MarketplaceListing.title.ilike(pattern),
                MarketplaceListing.description.ilike(pattern),
                MarketplaceListing.category_id.ilike(pattern),
            )
        )
    if listing_type:
        query = query.where(MarketplaceListing.listing_type == listing_type)
    if category_id:
        query = query.where(MarketplaceListing.category_id == category_id)
    if min_price is not None:
        query = query.where(MarketplaceListing.price >= min_price)
    if max_price is not None:
        query = query.where(MarketplaceListing.price <= max_price)
    if city:
        query = query.where(MarketplaceListing.city.ilike(f"%{city}%"))

    total_result = await db.execute(select(sa_func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    sort_col = getattr(MarketplaceListing, sort_by)
    query = query.order_by(asc(sort_col) if sort_order == "asc" else desc(sort_col))
    query = query.offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(query)
    return ListingListResponse(
        listings=[summarize(listing) for listing in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/listings/{listing_id}", response_model=ListingDetailResponse)
async def get_listing(listing_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(MarketplaceListing).where(MarketplaceListing.id == listing_id))
    listing = result.scalar_one_or_none()
    if not listing:
        raise HTTPException(status_code=404, detail="Listing not found")

    listing.view_count = (listing.view_count or 0) + 1
    await db.flush()
    await db.refresh(listing)
    return await compose_listing_detail(db, listing)
