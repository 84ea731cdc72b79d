import uuid

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.models.listing import ListingReview, ListingType, MarketplaceListing
from app.models.user import UserRole
from app.services.listings import format_price
from conftest import create_user


async def _listing(db, owner, title="Bathroom tiling", **kwargs) -> MarketplaceListing:
    listing = MarketplaceListing(
        id=uuid.uuid4(),
        owner_id=owner.id,
        title=title,
        description=kwargs.pop("description", "Tiling and grouting, materials included."),
        category_id=kwargs.pop("category_id", "handy-man"),
        city=kwargs.pop("city", "San Francisco"),
        **kwargs,
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    return listing


@pytest_asyncio.fixture
async def owner(db_session):
    return await create_user(db_session, UserRole.SPECIALIST, email="owner@example.com")


class TestFormatPrice:
    @pytest.mark.parametrize(
        "price,unit,currency,expected",
        [
            (None, "fixed", "USD", "Contact for price"),
            (1500, "fixed", "USD", "$1,500.00"),
            (45, "hour", "EUR", "€45.00/hour"),
            (300, "week", "GBP", "£300.00/week"),
            (20, "day", "CHF", "20.00 CHF/day"),
        ],
    )
    def test_format(self, price, unit, currency, expected):
        assert format_price(price, unit, currency) == expected


class TestListListings:
    @pytest.mark.asyncio
    async def test_filters(self, client, db_session, owner):
        await _listing(db_session, owner, "Bathroom tiling", price=400)
        await _listing(db_session, owner, "Used ladder", listing_type=ListingType.ITEM, category_id="other", price=60)
        await _listing(db_session, owner, "Hidden", is_active=False)

        data = (await client.get("/api/marketplace/listings")).json()
        assert data["total"] == 2

        data = (await client.get("/api/marketplace/listings", params={"search": "ladder"})).json()
        assert [item["title"] for item in data["listings"]] == ["Used ladder"]

        data = (await client.get("/api/marketplace/listings", params={"max_price": 100})).json()
        assert [item["title"] for item in data["listings"]] == ["Used ladder"]

        data = (await client.get("/api/marketplace/listings", params={"listing_type": "service"})).json()
        assert [item["title"] for item in data["listings"]] == ["Bathroom tiling"]

    @pytest.mark.asyncio
    async def test_sort_by_price(self, client, db_session, owner):
        await _listing(db_session, owner, "Pricey", price=900)
        await _listing(db_session, owner, "Cheap", price=10)

        data = (await client.get("/api/marketplace/listings", params={"sort_by": "price", "sort_order": "asc"})).json()
        assert [item["title"] for item in data["listings"]] == ["Cheap", "Pricey"]


class TestListingDetail:
    @pytest.mark.asyncio
    async def test_sections(self, client, db_session, owner):
        listing = await _listing(
            db_session,
            owner,
            price=45,
            price_unit="hour",
            images=["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"],
            lat=37.77,
            lng=-122.42,
        )
        await _listing(db_session, owner, "Kitchen backsplash")
        await _listing(db_session, owner, "Courier run", category_id="transport")
        db_session.add_all(
            [
                ListingReview(listing_id=listing.id, reviewer_name="Sam", rating=5, comment="Great"),
                ListingReview(listing_id=listing.id, reviewer_name="Ana", rating=4, comment="Good"),
                ListingReview(listing_id=listing.id, reviewer_name="Lee", rating=4, comment="Fine"),
            ]
        )
        await db_session.commit()

        resp = await client.get(f"/api/marketplace/listings/{listing.id}")
        assert resp.status_code == 200
        data = resp.json()

        assert data["gallery"]["cover"] == "https://img.example.com/1.jpg"
        assert len(data["gallery"]["images"]) == 2
        assert data["pricing"]["formatted"] == "$45.00/hour"
        assert data["location"] == {"city": "San Francisco", "lat": 37.77, "lng": -122.42}
        assert data["reviews"]["count"] == 3
        assert data["reviews"]["average_rating"] == 4.3
        assert [s["title"] for s in data["similar"]] == ["Kitchen backsplash"]

    @pytest.mark.asyncio
    async def test_no_reviews_no_images(self, client, db_session, owner):
        listing = await _listing(db_session, owner)
        data = (await client.get(f"/api/marketplace/listings/{listing.id}")).json()
        assert data["gallery"] == {"images": [], "cover": None}
        assert data["pricing"]["formatted"] == "Contact for price"
        assert data["reviews"] == {"average_rating": None, "count": 0, "items": []}

    @pytest.mark.asyncio
    async def test_view_count_increments(self, client, db_session, owner):
        listing = await _listing(db_session, owner)
        await client.get(f"/api/marketplace/listings/{listing.id}")
        resp = await client.get(f"/api/marketplace/listings/{listing.id}")
        assert resp.json()["view_count"] == 2

        result = await db_session.execute(select(MarketplaceListing.view_count).where(MarketplaceListing.id == listing.id))
        assert result.scalar_one() == 2

    @pytest.mark.asyncio
    async def test_not_found(self, client, setup_db):
        resp = await client.get(f"/api/marketplace/listings/{uuid.uuid4()}")
        assert resp.status_code == 404
