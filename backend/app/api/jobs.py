import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import Select, asc, desc, func as sa_func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user
from app.database import get_db
from app.models.job import Job, JobStatus, UrgencyLevel
from app.models.proposal import JobProposal
from app.models.user import User, UserRole
from app.schemas.job import JobCreate, JobFilters, JobListResponse, JobResponse

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def _build_job_query(filters: JobFilters) -> Select:
    query = select(Job)

    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.description.ilike(pattern)))

    if filters.category_id:
        query = query.where(Job.category_id == filters.category_id)

    if filters.status:
        query = query.where(Job.status == filters.status)

    if filters.urgency_level:
        query = query.where(Job.urgency_level == filters.urgency_level)

    if filters.city:
        query = query.where(Job.city.ilike(f"%{filters.city}%"))

    if filters.min_budget is not None:
        query = query.where(Job.budget_min >= filters.min_budget)

    sort_col = getattr(Job, filters.sort_by, Job.created_at)
    if filters.sort_order == "asc":
        query = query.order_by(asc(sort_col))
    else:
        query = query.order_by(desc(sort_col))

    return query


@router.get("", response_model=JobListResponse)
async def list_jobs(
    search: str | None = None,
    category_id: str | None = None,
    status: JobStatus | None = None,
    urgency_level: UrgencyLevel | None = None,
    city: str | None = None,
    min_budget: float | None = Query(None, ge=0),
    sort_by: str = Query("created_at", pattern="^(created_at|budget_min|title|urgency_level)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    filters = JobFilters(
        search=search,
        category_id=category_id,
        status=status,
        urgency_level=urgency_level,
        city=city,
        min_budget=min_budget,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )

    query = _build_job_query(filters)

    # Count total
    count_query = select(sa_func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Paginate
    offset = (filters.page - 1) * filters.page_size
    query = query.offset(offset).limit(filters.page_size)

    result = await db.execute(query)
    jobs = result.scalars().all()

    return JobListResponse(
        jobs=[JobResponse.model_validate(job) for job in jobs],
        total=total,
        page=filters.page,
        page_size=filters.page_size,
    )


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.role not in (UserRole.CUSTOMER, UserRole.ADMIN):
        raise HTTPException(status_code=403, detail="Only customers can post jobs")

    job = Job(customer_id=user.id, **data.model_dump())
    db.add(job)
    await db.flush()
    await db.refresh(job)
    return JobResponse.model_validate(job)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    jr = JobResponse.model_validate(job)
    count_result = await db.execute(select(sa_func.count(JobProposal.id)).where(JobProposal.job_id == job.id))
    jr.proposal_count = count_result.scalar() or 0
    return jr
