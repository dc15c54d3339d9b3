"""Schemas shared across marketplace routers."""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a review queue or catalog listing."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def create(cls, items: List[T], total: int, page: int, per_page: int):
        pages = -(-total // per_page) if per_page > 0 else 0
        return cls(items=items, total=total, page=page, per_page=per_page, pages=pages)


class ErrorResponse(BaseModel):
    """
    Body of every error response.

    ``redirect_to`` tells a client where to send the visitor (sign-in or
    dashboard); ``retry`` names the endpoint that completes a partially
    applied decision.
    """
    error: str
    code: str
    detail: Optional[str] = None
    fields: Optional[Dict[str, str]] = None
    redirect_to: Optional[str] = None
    retry: Optional[str] = None


class SuccessResponse(BaseModel):
    message: str
    data: Optional[Any] = None
