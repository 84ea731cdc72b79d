import uuid

import pytest

from app.models.job import JobStatus
from app.models.user import UserRole
from conftest import auth_headers, create_job, create_user


@pytest.mark.asyncio
async def test_list_jobs_empty(client, setup_db):
    resp = await client.get("/api/jobs")
    assert resp.status_code == 200
    data = resp.json()
    assert data["jobs"] == []
    assert data["total"] == 0


@pytest.mark.asyncio
async def test_list_jobs_filters(client, db_session, customer):
    await create_job(db_session, customer, "Fix leaking sink", city="San Francisco", budget_min=100)
    await create_job(db_session, customer, "Move a sofa", description="Two flights of stairs", category_id="transport", city="Oakland", budget_min=40)
    await create_job(db_session, customer, "Old sink job", status=JobStatus.COMPLETED)

    resp = await client.get("/api/jobs", params={"search": "sink"})
    assert resp.json()["total"] == 2

    resp = await client.get("/api/jobs", params={"category_id": "transport"})
    assert [j["title"] for j in resp.json()["jobs"]] == ["Move a sofa"]

    resp = await client.get("/api/jobs", params={"status": "completed"})
    assert [j["title"] for j in resp.json()["jobs"]] == ["Old sink job"]

    resp = await client.get("/api/jobs", params={"city": "oak"})
    assert resp.json()["total"] == 1

    resp = await client.get("/api/jobs", params={"min_budget": 50})
    assert [j["title"] for j in resp.json()["jobs"]] == ["Fix leaking sink"]


@pytest.mark.asyncio
async def test_list_jobs_sort_and_paginate(client, db_session, customer):
    for title in ("Bravo", "Alpha", "Charlie"):
        await create_job(db_session, customer, title)

    resp = await client.get("/api/jobs", params={"sort_by": "title", "sort_order": "asc", "page_size": 2})
    data = resp.json()
    assert [j["title"] for j in data["jobs"]] == ["Alpha", "Bravo"]
    assert data["total"] == 3

    resp = await client.get("/api/jobs", params={"sort_by": "title", "sort_order": "asc", "page_size": 2, "page": 2})
    assert [j["title"] for j in resp.json()["jobs"]] == ["Charlie"]


@pytest.mark.asyncio
async def test_list_jobs_rejects_unknown_sort(client, setup_db):
    resp = await client.get("/api/jobs", params={"sort_by": "password"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_job(client, customer):
    resp = await client.post(
        "/api/jobs",
        json={"title": "Paint the fence", "lat": 37.77, "lng": -122.41, "budget_min": 50, "budget_max": 150},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["customer_id"] == str(customer.id)
    assert data["status"] == "new"


@pytest.mark.asyncio
async def test_create_job_bad_budget(client, customer):
    resp = await client.post(
        "/api/jobs",
        json={"title": "Paint", "lat": 0, "lng": 0, "budget_min": 200, "budget_max": 100},
        headers=auth_headers(customer),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_job_requires_customer(client, specialist):
    resp = await client.post(
        "/api/jobs", json={"title": "Paint", "lat": 0, "lng": 0}, headers=auth_headers(specialist)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_job_requires_auth(client, setup_db):
    resp = await client.post("/api/jobs", json={"title": "Paint", "lat": 0, "lng": 0})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_get_job_with_proposal_count(client, db_session, open_job):
    pro = await create_user(db_session, UserRole.SPECIALIST)
    await client.post(
        f"/api/jobs/{open_job.id}/proposals",
        json={"price": 80, "message": "Can do it tomorrow"},
        headers=auth_headers(pro),
    )

    resp = await client.get(f"/api/jobs/{open_job.id}")
    assert resp.status_code == 200
    assert resp.json()["proposal_count"] == 1


@pytest.mark.asyncio
async def test_get_job_not_found(client, setup_db):
    resp = await client.get(f"/api/jobs/{uuid.uuid4()}")
    assert resp.status_code == 404
