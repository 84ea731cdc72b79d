import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user
from app.database import get_db
from app.models.assistant import (
    AssistantChat,
    AssistantMemoryLog,
    AssistantMode,
    AssistantPreference,
    InteractionType,
)
from app.models.user import User
from app.schemas.assistant import (
    ChatRequest,
    ChatResponse,
    EngagementResponse,
    InteractionCreate,
    PreferenceResponse,
    PreferenceUpdate,
    SuggestionListResponse,
    build_context,
)
from app.services.ai_assistant import AssistantLLM
from app.services.engagement import llm_enabled, predict_mode
from app.services.relevance import as_utc
from app.services.suggestion_engine import generate_suggestions
from app.services.user_state import load_engagement, load_recent_modes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])

DEFAULT_PROACTIVITY = 2


def get_llm(request: Request) -> AssistantLLM:
    return request.app.state.llm


async def _get_preference(db: AsyncSession, user_id: uuid.UUID) -> AssistantPreference | None:
    result = await db.execute(select(AssistantPreference).where(AssistantPreference.user_id == user_id))
    return result.scalar_one_or_none()


def _suggestions_paused(preference: AssistantPreference, mode: AssistantMode, now: datetime) -> bool:
    if not preference.is_enabled:
        return True
    if mode in (preference.disabled_modes or []):
        return True
    return preference.disabled_until is not None and as_utc(preference.disabled_until) > now


def _preference_response(preference: AssistantPreference | None) -> PreferenceResponse:
    if preference is None:
        return PreferenceResponse(
            proactivity_level=DEFAULT_PROACTIVITY, is_enabled=True, disabled_modes=[], disabled_until=None
        )
    return PreferenceResponse(
        proactivity_level=preference.proactivity_level,
        is_enabled=preference.is_enabled,
        disabled_modes=preference.disabled_modes or [],
        disabled_until=preference.disabled_until,
    )


@router.get("/suggestions", response_model=SuggestionListResponse)
async def get_suggestions(
    mode: AssistantMode | None = None,
    page: str | None = None,
    path: str = "",
    job_id: uuid.UUID | None = None,
    project_id: uuid.UUID | None = None,
    listing_id: uuid.UUID | None = None,
    category_id: str | None = None,
    section: str | None = None,
    invoice_id: str | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: AssistantLLM = Depends(get_llm),
):
    # A failed lookup below rolls the session back and expires `user`
    user_id = user.id
    if mode is None:
        mode = predict_mode(path, await load_recent_modes(db, user_id))

    # Fields that do not belong to the mode's context are ignored
    extras = {
        "job_id": job_id,
        "project_id": project_id,
        "listing_id": listing_id,
        "category_id": category_id,
        "section": section,
        "invoice_id": invoice_id,
    }
    context = build_context(mode, current_path=path, page=page, **{k: v for k, v in extras.items() if v is not None})

    preference = await _get_preference(db, user_id)
    level = preference.proactivity_level if preference else DEFAULT_PROACTIVITY
    paused = preference is not None and _suggestions_paused(preference, mode, datetime.now(timezone.utc))
    engagement = await load_engagement(db, user_id)

    if paused:
        logger.info("Assistant suggestions paused for user %s in %s mode", user_id, mode)
        return SuggestionListResponse(suggestions=[], mode=mode, engagement_score=engagement, proactivity_level=level)

    suggestions = await generate_suggestions(db, user_id, context, llm, level, engagement)

    try:
        for suggestion in suggestions:
            db.add(
                AssistantMemoryLog(
                    user_id=user_id,
                    title=suggestion.title,
                    action=suggestion.action or "",
                    context=suggestion.context or "",
                    mode=suggestion.mode,
                    interaction_type=InteractionType.SUGGESTION_SHOWN,
                )
            )
        await db.flush()
    except Exception:
        logger.exception("Failed to record shown suggestions for user %s", user_id)
        await db.rollback()

    return SuggestionListResponse(
        suggestions=suggestions,
        mode=mode,
        engagement_score=engagement,
        proactivity_level=level,
    )


@router.post("/interactions", status_code=201)
async def record_interaction(
    data: InteractionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    log = AssistantMemoryLog(
        user_id=user.id,
        title=data.title,
        action=data.action,
        context=data.context,
        mode=data.mode,
        interaction_type=data.interaction_type,
        helpful=data.helpful,
    )
    db.add(log)
    await db.flush()
    return {"id": str(log.id), "status": "recorded"}


@router.get("/engagement", response_model=EngagementResponse)
async def get_engagement(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    score = await load_engagement(db, user.id)
    return EngagementResponse(engagement_score=score, llm_suggestions_enabled=llm_enabled(score))


@router.get("/preferences", response_model=PreferenceResponse)
async def get_preferences(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return _preference_response(await _get_preference(db, user.id))


@router.put("/preferences", response_model=PreferenceResponse)
async def update_preferences(
    data: PreferenceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    changes = data.model_dump(exclude_unset=True)
    # Only disabled_until may be cleared with an explicit null
    for field in ("proactivity_level", "is_enabled", "disabled_modes"):
        if changes.get(field, ...) is None:
            changes.pop(field)

    preference = await _get_preference(db, user.id)
    if preference is None:
        preference = AssistantPreference(
            user_id=user.id, proactivity_level=DEFAULT_PROACTIVITY, is_enabled=True, disabled_modes=[]
        )
        db.add(preference)
    for field, value in changes.items():
        setattr(preference, field, value)
    await db.flush()
    return _preference_response(preference)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    data: ChatRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: AssistantLLM = Depends(get_llm),
):
    mode = data.context.mode
    content, ai_generated = await llm.generate_response(
        data.message,
        mode,
        context=data.context.model_dump(mode="json"),
        history=[turn.model_dump() for turn in data.history],
    )

    db.add(AssistantChat(user_id=user.id, mode=mode, message=data.message, response=content, ai_generated=ai_generated))
    db.add(
        AssistantMemoryLog(
            user_id=user.id,
            title=data.message[:255],
            context=data.context.page or "",
            mode=mode,
            interaction_type=InteractionType.CHAT,
        )
    )
    await db.flush()
    return ChatResponse(content=content, ai_generated=ai_generated, mode=mode)
