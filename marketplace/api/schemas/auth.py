from pydantic import BaseModel, ConfigDict, EmailStr, Field
from uuid import UUID
from datetime import datetime
from typing import Optional


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = Field(None, max_length=255)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class ConfirmEmailRequest(BaseModel):
    token: str


class RefreshRequest(BaseModel):
    refresh_token: str


class PasswordResetRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


class PasswordResetComplete(BaseModel):
    token: str
    password: str


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: Optional[str]
    role: str
    seller_status: str
    created_at: datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: Optional[ProfileResponse] = None


class SignUpResponse(BaseModel):
    status: str  # confirmation_required, signed_in
    email: str
    session: Optional[SessionResponse] = None
