from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class InquiryType(str, Enum):
    PARTNERSHIP = "partnership"
    SPONSORSHIP = "sponsorship"
    VENUE = "venue"
    CORPORATE = "corporate"
    MARKETING = "marketing"
    INVESTMENT = "investment"
    OTHER = "other"


class BusinessInquiry(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=255)
    inquiry_type: InquiryType
    message: str = Field(min_length=1, max_length=5000)


class AccessDecisionResponse(BaseModel):
    path: str
    decision: str
    redirect_to: Optional[str] = None


class UploadResponse(BaseModel):
    url: str
