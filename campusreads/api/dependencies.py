"""FastAPI dependencies that hand route handlers their collaborators."""

from typing import Optional

from fastapi import Header, Request

from campusreads.ports.recommender import RecommenderPort
from campusreads.services.lending import LendingService


def get_recommender(request: Request) -> RecommenderPort:
    return request.app.state.recommender


def get_lending_service(request: Request) -> LendingService:
    return request.app.state.lending


def get_borrower(
    x_user_email: Optional[str] = Header(default=None),
) -> Optional[str]:
    """Borrower identity as forwarded by the signed-in client. Not verified here."""
    if x_user_email is None:
        return None
    return x_user_email.strip() or None
