import json
import logging
import uuid

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.job import Job
from app.models.notification import Notification
from app.models.proposal import JobProposal
from app.models.user import User

logger = logging.getLogger(__name__)

WS_CHANNEL = "jobmate:ws_broadcast"
NEW_PROPOSAL = "NEW_PROPOSAL"


async def publish_event(event_type: str, data: dict):
    """Publish an event on Redis so every API process can push it to its WebSocket clients."""
    if not settings.redis_url:
        logger.debug("Redis not configured, skipping %s event", event_type)
        return

    r = aioredis.from_url(settings.redis_url)
    try:
        await r.publish(WS_CHANNEL, json.dumps({"type": event_type, "data": data}, default=str))
    finally:
        await r.aclose()


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    type: str,
    title: str,
    message: str,
    data: dict | None = None,
) -> Notification:
    notification = Notification(user_id=user_id, type=type, title=title, message=message, data=data or {})
    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    try:
        await publish_event(
            "notification",
            {
                "id": str(notification.id),
                "user_id": str(user_id),
                "type": type,
                "title": title,
                "message": message,
                "data": notification.data,
            },
        )
    except Exception:
        logger.exception("Failed to publish notification %s", notification.id)
    return notification


async def notify_new_proposal(db: AsyncSession, job: Job, proposal: JobProposal, specialist: User) -> Notification | None:
    """Tell the job owner about a new proposal. Never raises."""
    name = specialist.full_name or specialist.email
    try:
        return await create_notification(
            db,
            user_id=job.customer_id,
            type=NEW_PROPOSAL,
            title="New proposal received",
            message=f'{name} sent a proposal of ${proposal.price:,.2f} for "{job.title}"',
            data={"job_id": str(job.id), "proposal_id": str(proposal.id), "specialist_id": str(specialist.id)},
        )
    except Exception:
        logger.exception("Failed to create NEW_PROPOSAL notification for job %s", job.id)
        await db.rollback()
        return None
