import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.listing import ListingReview, MarketplaceListing
from app.schemas.listing import (
    GallerySection,
    ListingDetailResponse,
    ListingSummary,
    LocationSection,
    PricingSection,
    ReviewResponse,
    ReviewsSection,
)

logger = logging.getLogger(__name__)

REVIEW_LIMIT = 10
SIMILAR_LIMIT = 5

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}
UNIT_SUFFIXES = {"hour": "/hour", "day": "/day", "week": "/week", "month": "/month"}


def format_price(price: float | None, unit: str, currency: str) -> str:
    if price is None:
        return "Contact for price"
    symbol = CURRENCY_SYMBOLS.get(currency)
    amount = f"{symbol}{price:,.2f}" if symbol else f"{price:,.2f} {currency}"
    return amount + UNIT_SUFFIXES.get(unit, "")


def summarize(listing: MarketplaceListing) -> ListingSummary:
    images = listing.images or []
    return ListingSummary(
        id=listing.id,
        title=listing.title,
        listing_type=listing.listing_type,
        category_id=listing.category_id,
        price=listing.price,
        price_unit=listing.price_unit,
        currency=listing.currency,
        city=listing.city,
        cover_image=images[0] if images else None,
        created_at=listing.created_at,
    )


async def load_similar(db: AsyncSession, listing: MarketplaceListing, limit: int = SIMILAR_LIMIT) -> list[ListingSummary]:
    result = await db.execute(
        select(MarketplaceListing)
        .where(
            MarketplaceListing.category_id == listing.category_id,
            MarketplaceListing.id != listing.id,
            MarketplaceListing.is_active.is_(True),
        )
        .order_by(MarketplaceListing.created_at.desc())
        .limit(limit)
    )
    return [summarize(item) for item in result.scalars().all()]


async def load_reviews(db: AsyncSession, listing: MarketplaceListing) -> ReviewsSection:
    stats = await db.execute(
        select(func.avg(ListingReview.rating), func.count(ListingReview.id)).where(
            ListingReview.listing_id == listing.id
        )
    )
    average, count = stats.one()

    result = await db.execute(
        select(ListingReview)
        .where(ListingReview.listing_id == listing.id)
        .order_by(ListingReview.created_at.desc())
        .limit(REVIEW_LIMIT)
    )
    return ReviewsSection(
        average_rating=round(float(average), 1) if average is not None else None,
        count=count or 0,
        items=[ReviewResponse.model_validate(r) for r in result.scalars().all()],
    )


async def compose_listing_detail(db: AsyncSession, listing: MarketplaceListing) -> ListingDetailResponse:
    """Assemble the detail view sections from one listing record."""
    images = [img for img in (listing.images or []) if isinstance(img, str)]
    return ListingDetailResponse(
        id=listing.id,
        owner_id=listing.owner_id,
        title=listing.title,
        description=listing.description,
        listing_type=listing.listing_type,
        category_id=listing.category_id,
        view_count=listing.view_count,
        created_at=listing.created_at,
        gallery=GallerySection(images=images, cover=images[0] if images else None),
        pricing=PricingSection(
            price=listing.price,
            unit=listing.price_unit,
            currency=listing.currency,
            formatted=format_price(listing.price, listing.price_unit, listing.currency),
        ),
        location=LocationSection(city=listing.city, lat=listing.lat, lng=listing.lng),
        reviews=await load_reviews(db, listing),
        similar=await load_similar(db, listing),
    )
