import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class AssistantMode(StrEnum):
    MATCHING = "MATCHING"
    PROJECT_SETUP = "PROJECT_SETUP"
    PAYMENTS = "PAYMENTS"
    PROFILE = "PROFILE"
    MARKETPLACE = "MARKETPLACE"
    GENERAL = "GENERAL"


class InteractionType(StrEnum):
    SUGGESTION_SHOWN = "suggestion_shown"
    SUGGESTION_ACCEPTED = "suggestion_accepted"
    SUGGESTION_DISMISSED = "suggestion_dismissed"
    CHAT = "chat"


class AssistantPreference(Base):
    __tablename__ = "assistant_preferences"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    proactivity_level: Mapped[int] = mapped_column(Integer, default=2)  # 1 minimal, 2 balanced, 3 proactive
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    disabled_modes: Mapped[list] = mapped_column(JSONB, default=list)
    disabled_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AssistantMemoryLog(Base):
    __tablename__ = "assistant_memory_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="")
    action: Mapped[str] = mapped_column(String(255), default="")
    context: Mapped[str] = mapped_column(String(100), default="")
    mode: Mapped[str] = mapped_column(String(20), default=AssistantMode.GENERAL)
    interaction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    helpful: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_assistant_memory_logs_user_created", "user_id", "created_at"),
        Index("ix_assistant_memory_logs_user_type", "user_id", "interaction_type"),
    )


class AssistantChat(Base):
    __tablename__ = "assistant_chats"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    mode: Mapped[str] = mapped_column(String(20), default=AssistantMode.GENERAL)
    message: Mapped[str] = mapped_column(Text, default="")
    response: Mapped[str] = mapped_column(Text, default="")
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
