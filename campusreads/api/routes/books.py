"""Borrow action invoked from the recommendation list."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from campusreads.api.dependencies import get_borrower, get_lending_service
from campusreads.api.schemas import BorrowResponse
from campusreads.errors import (
    AlreadyBorrowedError,
    BookNotFoundError,
    BookUnavailableError,
    MissingBorrowerError,
)
from campusreads.services.lending import LendingService

router = APIRouter(prefix="/books", tags=["Books"])


@router.post(
    "/{isbn}/borrow",
    response_model=BorrowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def borrow_book(
    isbn: str,
    borrower: Optional[str] = Depends(get_borrower),
    lending: LendingService = Depends(get_lending_service),
) -> BorrowResponse:
    """Borrow one copy of a book for the requesting borrower."""
    try:
        record = await lending.borrow(borrower, isbn)
    except MissingBorrowerError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except BookNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except (BookUnavailableError, AlreadyBorrowedError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return BorrowResponse.model_validate(record)
