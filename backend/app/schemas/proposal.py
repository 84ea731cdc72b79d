import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProposalCreate(BaseModel):
    # Presence of price and message is checked by the endpoint so a missing field gives a 400
    price: float | None = Field(None, gt=0)
    message: str | None = None
    estimated_duration: int | None = Field(None, ge=1)
    estimated_duration_unit: str = ""


class ProposalSpecialist(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str

    model_config = {"from_attributes": True}


class ProposalResponse(BaseModel):
    id: uuid.UUID
    job_id: uuid.UUID
    specialist_id: uuid.UUID
    price: float
    message: str
    estimated_duration: int | None
    estimated_duration_unit: str
    status: str
    created_at: datetime
    specialist: ProposalSpecialist | None = None

    model_config = {"from_attributes": True}
