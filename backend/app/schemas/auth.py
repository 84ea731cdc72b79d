import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = ""
    last_name: str = ""
    # Admins are created out of band
    role: Literal["customer", "specialist"] = "customer"
    skills: list[str] = []


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    role: str
    bio: str
    created_at: datetime
    skills: list[str] = []

    model_config = {"from_attributes": True}
