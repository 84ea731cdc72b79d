import uuid
from datetime import datetime

from pydantic import BaseModel


class ListingSummary(BaseModel):
    id: uuid.UUID
    title: str
    listing_type: str
    category_id: str
    price: float | None
    price_unit: str
    currency: str
    city: str
    cover_image: str | None = None
    created_at: datetime


class ListingListResponse(BaseModel):
    listings: list[ListingSummary]
    total: int
    page: int
    page_size: int


class GallerySection(BaseModel):
    images: list[str]
    cover: str | None


class PricingSection(BaseModel):
    price: float | None
    unit: str
    currency: str
    formatted: str


class LocationSection(BaseModel):
    city: str
    lat: float | None
    lng: float | None


class ReviewResponse(BaseModel):
    id: uuid.UUID
    reviewer_name: str
    rating: int
    comment: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReviewsSection(BaseModel):
    average_rating: float | None
    count: int
    items: list[ReviewResponse]


class ListingDetailResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: str
    listing_type: str
    category_id: str
    view_count: int
    created_at: datetime
    gallery: GallerySection
    pricing: PricingSection
    location: LocationSection
    reviews: ReviewsSection
    similar: list[ListingSummary]
