import uuid
from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from app.models.assistant import AssistantMode


class _ContextBase(BaseModel):
    current_path: str = ""
    page: str | None = None


class MatchingContext(_ContextBase):
    mode: Literal[AssistantMode.MATCHING] = AssistantMode.MATCHING
    job_id: uuid.UUID | None = None
    category_id: str | None = None


class ProjectSetupContext(_ContextBase):
    mode: Literal[AssistantMode.PROJECT_SETUP] = AssistantMode.PROJECT_SETUP
    project_id: uuid.UUID | None = None


class PaymentsContext(_ContextBase):
    mode: Literal[AssistantMode.PAYMENTS] = AssistantMode.PAYMENTS
    invoice_id: str | None = None


class ProfileContext(_ContextBase):
    mode: Literal[AssistantMode.PROFILE] = AssistantMode.PROFILE
    section: str | None = None


class MarketplaceContext(_ContextBase):
    mode: Literal[AssistantMode.MARKETPLACE] = AssistantMode.MARKETPLACE
    listing_id: uuid.UUID | None = None
    category_id: str | None = None


class GeneralContext(_ContextBase):
    mode: Literal[AssistantMode.GENERAL] = AssistantMode.GENERAL


AssistantContext = Annotated[
    Union[
        MatchingContext,
        ProjectSetupContext,
        PaymentsContext,
        ProfileContext,
        MarketplaceContext,
        GeneralContext,
    ],
    Field(discriminator="mode"),
]

context_adapter = TypeAdapter(AssistantContext)


def build_context(mode: AssistantMode, current_path: str = "", page: str | None = None, **fields) -> AssistantContext:
    return context_adapter.validate_python({"mode": mode, "current_path": current_path, "page": page, **fields})


class SuggestionDraft(BaseModel):
    title: str
    content: str
    mode: AssistantMode
    context: str | None = None
    action: str | None = None
    skills: list[str] = []
    priority: int = Field(2, ge=1, le=3)
    action_url: str | None = None
    ai_generated: bool = False


class Suggestion(SuggestionDraft):
    user_id: uuid.UUID
    relevance_score: int = Field(..., ge=0, le=100)


class SuggestionListResponse(BaseModel):
    suggestions: list[Suggestion]
    mode: AssistantMode
    engagement_score: int
    proactivity_level: int


class InteractionCreate(BaseModel):
    title: str
    interaction_type: Literal["suggestion_accepted", "suggestion_dismissed"]
    context: str = ""
    action: str = ""
    mode: AssistantMode = AssistantMode.GENERAL
    helpful: bool | None = None


class PreferenceResponse(BaseModel):
    proactivity_level: int
    is_enabled: bool
    disabled_modes: list[AssistantMode]
    disabled_until: datetime | None


class PreferenceUpdate(BaseModel):
    """Partial update. Only fields present in the request body are changed;
    an explicit null ``disabled_until`` ends a snooze."""

    proactivity_level: int | None = Field(None, ge=1, le=3)
    is_enabled: bool | None = None
    disabled_modes: list[AssistantMode] | None = None
    disabled_until: datetime | None = None


class EngagementResponse(BaseModel):
    engagement_score: int
    llm_suggestions_enabled: bool


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    context: AssistantContext = Field(default_factory=GeneralContext)
    history: list[ChatTurn] = []


class ChatResponse(BaseModel):
    content: str
    ai_generated: bool
    mode: AssistantMode
