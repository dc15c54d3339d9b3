"""Submission payloads for the review workflow.

Both the HTTP layer and direct callers go through these models, so blank or
malformed fields fail the same way everywhere.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from marketplace.core.errors import ValidationError

T = TypeVar("T", bound=BaseModel)


class BusinessType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"
    NONPROFIT = "nonprofit"


class SellerApplicationInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    business_name: str = Field(min_length=1, max_length=255)
    business_type: BusinessType = BusinessType.INDIVIDUAL
    website: Optional[str] = Field(None, max_length=500)
    experience: str = Field(min_length=1)
    event_types: str = Field(min_length=1)

    @field_validator("website", mode="before")
    @classmethod
    def blank_website_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EventRequestInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    date: dt.date
    time: dt.time
    location: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(gt=0)
    category: str = Field(min_length=1, max_length=50)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return value.lower()

    @field_validator("image_url", mode="before")
    @classmethod
    def blank_image_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def parse_input(model: Type[T], fields: Union[T, Mapping[str, Any]]) -> T:
    """
    Validate raw submission fields into ``model``.

    Raises:
        ValidationError: With a message per offending field
    """
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(dict(fields))
    except pydantic.ValidationError as exc:
        errors = {}
        for error in exc.errors():
            name = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(name, error["msg"])
        raise ValidationError("Please correct the highlighted fields", fields=errors) from None
