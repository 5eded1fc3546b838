"""Borrow workflow triggered when a reader acts on a recommendation."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from campusreads.domain.entities import BorrowRecord
from campusreads.errors import (
    AlreadyBorrowedError,
    BookNotFoundError,
    BookUnavailableError,
    MissingBorrowerError,
)
from campusreads.ports.stores import LendingPort

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LendingService:
    """Checks a book out to a borrower."""

    def __init__(
        self,
        store: LendingPort,
        loan_period_days: int = 14,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._loan_period = timedelta(days=loan_period_days)
        self._clock = clock

    async def borrow(self, borrower: Optional[str], isbn: str) -> BorrowRecord:
        """
        Borrow one copy of ``isbn`` for ``borrower``.

        The ISBN is matched as given first, then with spaces and dashes
        removed. Raises BookNotFoundError, BookUnavailableError or
        AlreadyBorrowedError when the borrow cannot go ahead.
        """
        if not borrower or not borrower.strip():
            raise MissingBorrowerError()
        borrower = borrower.strip()

        book = await self._store.find_book(isbn.strip())
        if book is None:
            logger.info("Borrow rejected, unknown ISBN %r (borrower=%s)", isbn, borrower)
            raise BookNotFoundError(isbn)
        if not book.is_available:
            raise BookUnavailableError(book.isbn)
        if await self._store.has_active_borrow(borrower, book.isbn):
            raise AlreadyBorrowedError(borrower, book.isbn)

        borrowed_at = self._clock()
        return await self._store.record_borrow(
            borrower,
            book.isbn,
            borrowed_at=borrowed_at,
            due_at=borrowed_at + self._loan_period,
        )
