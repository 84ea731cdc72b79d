import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.assistant import AssistantChat, AssistantMemoryLog, InteractionType
from app.models.job import Job, JobStatus
from app.models.listing import MarketplaceListing
from app.models.notification import Notification
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.proposal import JobProposal
from app.models.user import User
from app.services.engagement import NEUTRAL_ENGAGEMENT, engagement_score
from app.services.matcher import find_matches_for_user
from app.services.relevance import LoggedSuggestion, ScoringState, as_utc

logger = logging.getLogger(__name__)

ENGAGEMENT_WINDOW = timedelta(days=7)
RECENT_LOG_WINDOW = timedelta(hours=24)
ACCEPTED_LOG_LIMIT = 50
RECENT_MODE_LIMIT = 10


@dataclass
class UserState:
    """Facts about a user that the suggestion rules are evaluated against."""

    user_id: uuid.UUID
    first_name: str = ""
    role: str = ""
    bio: str = ""
    skills: list[str] = field(default_factory=list)
    open_jobs: int = 0
    unreviewed_completed_jobs: int = 0
    top_matches: list[tuple[Job, float]] = field(default_factory=list)
    last_proposal: JobProposal | None = None
    listings: int = 0
    payment_methods: int = 0
    pending_payments: int = 0
    unread_notifications: int = 0
    account_age_days: int = 0

    @property
    def top_match(self) -> Job | None:
        return self.top_matches[0][0] if self.top_matches else None

    def profile_summary(self) -> str:
        parts = [f"Role: {self.role}"]
        if self.skills:
            parts.append(f"Skills: {', '.join(self.skills)}")
        if self.bio:
            parts.append(f"Bio: {self.bio[:300]}")
        parts.append(f"Open jobs: {self.open_jobs}, listings: {self.listings}")
        return "\n".join(parts)


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one() or 0


async def load_user_state(db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None) -> UserState:
    now = now or datetime.now(timezone.utc)
    result = await db.execute(select(User).options(selectinload(User.skills)).where(User.id == user_id))
    user = result.scalar_one()
    skills = [s.name for s in user.skills]

    state = UserState(
        user_id=user.id,
        first_name=user.first_name,
        role=user.role,
        bio=user.bio or "",
        skills=skills,
    )
    if user.created_at is not None:
        state.account_age_days = (now - as_utc(user.created_at)).days

    state.open_jobs = await _count(
        db, select(func.count(Job.id)).where(Job.customer_id == user.id, Job.status == JobStatus.NEW)
    )
    state.unreviewed_completed_jobs = await _count(
        db,
        select(func.count(Job.id)).where(
            Job.customer_id == user.id,
            Job.status == JobStatus.COMPLETED,
            Job.has_client_review.is_(False),
        ),
    )
    state.listings = await _count(
        db,
        select(func.count(MarketplaceListing.id)).where(
            MarketplaceListing.owner_id == user.id, MarketplaceListing.is_active.is_(True)
        ),
    )
    state.payment_methods = await _count(
        db, select(func.count(PaymentMethod.id)).where(PaymentMethod.user_id == user.id)
    )
    state.pending_payments = await _count(
        db,
        select(func.count(Payment.id)).where(Payment.user_id == user.id, Payment.status == PaymentStatus.PENDING),
    )
    state.unread_notifications = await _count(
        db,
        select(func.count(Notification.id)).where(Notification.user_id == user.id, Notification.is_read.is_(False)),
    )

    result = await db.execute(
        select(JobProposal)
        .where(JobProposal.specialist_id == user.id)
        .order_by(JobProposal.created_at.desc())
        .limit(1)
    )
    state.last_proposal = result.scalar_one_or_none()

    state.top_matches = await find_matches_for_user(db, skills)
    return state


async def load_scoring_state(db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None) -> ScoringState:
    now = now or datetime.now(timezone.utc)

    result = await db.execute(
        select(AssistantMemoryLog)
        .where(
            AssistantMemoryLog.user_id == user_id,
            AssistantMemoryLog.interaction_type == InteractionType.SUGGESTION_ACCEPTED,
        )
        .order_by(AssistantMemoryLog.created_at.desc())
        .limit(ACCEPTED_LOG_LIMIT)
    )
    accepted = [
        LoggedSuggestion(title=log.title, action=log.action, context=log.context, created_at=log.created_at)
        for log in result.scalars().all()
    ]

    result = await db.execute(
        select(AssistantMemoryLog).where(
            AssistantMemoryLog.user_id == user_id,
            AssistantMemoryLog.interaction_type == InteractionType.SUGGESTION_SHOWN,
            AssistantMemoryLog.created_at >= now - RECENT_LOG_WINDOW,
        )
    )
    recent = [
        LoggedSuggestion(title=log.title, action=log.action, context=log.context, created_at=log.created_at)
        for log in result.scalars().all()
    ]

    result = await db.execute(select(User).options(selectinload(User.skills)).where(User.id == user_id))
    user = result.scalar_one()

    return ScoringState(accepted=accepted, recent=recent, skills={s.name for s in user.skills}, now=now)


async def load_engagement(db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None) -> int:
    """Engagement over the last week. Falls back to a neutral score when the lookup fails."""
    since = (now or datetime.now(timezone.utc)) - ENGAGEMENT_WINDOW
    try:
        interactions = await _count(
            db,
            select(func.count(AssistantMemoryLog.id)).where(
                AssistantMemoryLog.user_id == user_id,
                AssistantMemoryLog.interaction_type != InteractionType.SUGGESTION_SHOWN,
                AssistantMemoryLog.created_at >= since,
            ),
        )
        helpful = await _count(
            db,
            select(func.count(AssistantMemoryLog.id)).where(
                AssistantMemoryLog.user_id == user_id,
                AssistantMemoryLog.helpful.is_(True),
                AssistantMemoryLog.created_at >= since,
            ),
        )
        chats = await _count(
            db,
            select(func.count(AssistantChat.id)).where(
                AssistantChat.user_id == user_id, AssistantChat.created_at >= since
            ),
        )
    except Exception:
        logger.exception("Failed to load engagement for user %s", user_id)
        await db.rollback()
        return NEUTRAL_ENGAGEMENT
    return engagement_score(interactions, helpful, chats)


async def load_dismissed_titles(db: AsyncSession, user_id: uuid.UUID) -> set[str]:
    """Titles the user dismissed. Empty when the lookup fails."""
    try:
        result = await db.execute(
            select(AssistantMemoryLog.title)
            .where(
                AssistantMemoryLog.user_id == user_id,
                AssistantMemoryLog.interaction_type == InteractionType.SUGGESTION_DISMISSED,
            )
            .distinct()
        )
    except Exception:
        logger.exception("Failed to load dismissed suggestions for user %s", user_id)
        await db.rollback()
        return set()
    return set(result.scalars().all())


async def load_recent_modes(db: AsyncSession, user_id: uuid.UUID) -> list[str]:
    result = await db.execute(
        select(AssistantMemoryLog.mode)
        .where(AssistantMemoryLog.user_id == user_id)
        .order_by(AssistantMemoryLog.created_at.desc())
        .limit(RECENT_MODE_LIMIT)
    )
    return [mode for mode in result.scalars().all() if mode]
