import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth import get_current_user
from app.database import get_db
from app.models.job import Job
from app.models.proposal import JobProposal
from app.models.user import User, UserRole
from app.schemas.proposal import ProposalCreate, ProposalResponse
from app.services.notifier import notify_new_proposal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["proposals"])


async def _get_job(db: AsyncSession, job_id: uuid.UUID) -> Job:
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("/{job_id}/proposals", response_model=list[ProposalResponse])
async def list_proposals(
    job_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    job = await _get_job(db, job_id)

    query = (
        select(JobProposal)
        .options(selectinload(JobProposal.specialist))
        .where(JobProposal.job_id == job.id)
        .order_by(JobProposal.created_at.desc())
    )
    # Everyone but the owner and admins only sees their own proposal
    if job.customer_id != user.id and user.role != UserRole.ADMIN:
        query = query.where(JobProposal.specialist_id == user.id)

    result = await db.execute(query)
    return [ProposalResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/{job_id}/proposals", response_model=ProposalResponse, status_code=201)
async def create_proposal(
    job_id: uuid.UUID,
    data: ProposalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user.role != UserRole.SPECIALIST:
        raise HTTPException(status_code=403, detail="Only specialists can submit proposals")

    if data.price is None or not (data.message or "").strip():
        raise HTTPException(status_code=400, detail="Price and description are required")

    job = await _get_job(db, job_id)
    if not job.is_open:
        raise HTTPException(status_code=400, detail="Job is not open for proposals")

    existing = await db.execute(
        select(JobProposal.id).where(JobProposal.job_id == job.id, JobProposal.specialist_id == user.id)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="You have already submitted a proposal for this job")

    proposal = JobProposal(
        job_id=job.id,
        specialist_id=user.id,
        price=data.price,
        message=data.message.strip(),
        estimated_duration=data.estimated_duration,
        estimated_duration_unit=data.estimated_duration_unit,
    )
    db.add(proposal)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent submission from the same specialist
        await db.rollback()
        raise HTTPException(status_code=409, detail="You have already submitted a proposal for this job")

    await db.commit()
    await db.refresh(proposal)
    await db.refresh(proposal, attribute_names=["specialist"])
    response = ProposalResponse.model_validate(proposal)
    logger.info("Specialist %s submitted proposal %s for job %s", user.id, proposal.id, job.id)

    await notify_new_proposal(db, job, proposal, user)
    return response
