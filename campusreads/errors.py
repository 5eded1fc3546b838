"""Domain errors raised by the lending workflow."""


class CampusReadsError(Exception):
    """Base class for errors surfaced to API clients."""


class MissingBorrowerError(CampusReadsError):
    def __init__(self) -> None:
        super().__init__("A borrower identity is required")


class BookNotFoundError(CampusReadsError):
    def __init__(self, isbn: str) -> None:
        super().__init__(f"Book not found with ISBN: {isbn!r}")
        self.isbn = isbn


class BookUnavailableError(CampusReadsError):
    def __init__(self, isbn: str) -> None:
        super().__init__(f"No copies of {isbn!r} are available")
        self.isbn = isbn


class AlreadyBorrowedError(CampusReadsError):
    def __init__(self, borrower: str, isbn: str) -> None:
        super().__init__(f"{borrower} already has an active borrow for {isbn!r}")
        self.borrower = borrower
        self.isbn = isbn
