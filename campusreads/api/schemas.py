"""Pydantic request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RecommendationItem(BaseModel):
    isbn: str
    title: str
    author: str
    category: Optional[str] = None
    available_copies: int
    reason: str


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]


class BorrowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    borrower: str
    book_isbn: str
    borrowed_at: datetime
    due_at: datetime
    returned: bool
