import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class JobStatus(StrEnum):
    NEW = "new"  # open for proposals
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class UrgencyLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default=JobStatus.NEW)

    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    city: Mapped[str] = mapped_column(String(255), default="")

    category_id: Mapped[str] = mapped_column(String(100), default="other")
    subcategory: Mapped[str] = mapped_column(String(100), default="")
    urgency_level: Mapped[str] = mapped_column(String(20), default=UrgencyLevel.MEDIUM)

    budget_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_verified_payment: Mapped[bool] = mapped_column(Boolean, default=False)
    is_neighbor_posted: Mapped[bool] = mapped_column(Boolean, default=False)
    has_client_review: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_jobs_customer_id", "customer_id"),
        Index("ix_jobs_status", "status"),
        Index("ix_jobs_category_id", "category_id"),
        Index("ix_jobs_created_at", "created_at"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.NEW

    def __repr__(self) -> str:
        return f"<Job {self.title} ({self.status})>"
