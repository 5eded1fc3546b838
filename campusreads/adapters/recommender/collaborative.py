"""
Collaborative-filtering recommender with an ordered chain of fallback tiers.

Tiers, most personal first:
  1. peers    : books other borrowers of the caller's current books also hold,
               ranked by how many of their active records mention each book.
  2. category : available books in the categories of the caller's current books.
  3. author   : available books by the authors of the caller's current books.
  4. popular  : available books with the most copies on the shelf.

Each tier only fills the slots left by the tiers before it. A failed or slow
store read empties the tier it happened in and the chain moves on, so the
engine never raises to its caller.

If the read of the caller's own borrows fails, the caller is treated as having
no history. Their current books are then unknown and may appear in the
popular tier; only then can a result contain a book the caller holds.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable, Collection, Iterable
from dataclasses import dataclass, field
from typing import Optional, TypeVar

from campusreads.domain.entities import BorrowRecord, CatalogEntry
from campusreads.ports.recommender import Recommendation, RecommenderPort
from campusreads.ports.stores import BorrowLedgerPort, CatalogPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LIMIT = 5


class UpstreamReadFailure(Exception):
    """A ledger or catalog read failed or timed out."""


@dataclass(frozen=True)
class RecommendationContext:
    """What is known about the caller before any tier runs."""

    borrower: str
    own_isbns: frozenset[str] = frozenset()
    own_books: tuple[CatalogEntry, ...] = field(default_factory=tuple)

    @property
    def categories(self) -> set[str]:
        return {book.category for book in self.own_books if book.category}

    @property
    def authors(self) -> set[str]:
        return {book.author for book in self.own_books if book.author}


Tier = Callable[[RecommendationContext, Collection[str], int], Awaitable[list[CatalogEntry]]]


def rank_by_frequency(
    records: Iterable[BorrowRecord], exclude: Collection[str]
) -> list[str]:
    """
    Order book ISBNs by how many records mention them, most frequent first.

    Every record counts, so two peers holding the same book count twice.
    Equal counts keep the order in which the ISBNs were first seen.
    """
    counts = Counter(r.book_isbn for r in records if r.book_isbn not in exclude)
    return sorted(counts, key=lambda isbn: -counts[isbn])


class CollaborativeRecommender(RecommenderPort):
    """Recommends available books from peer borrowing, falling back to catalog heuristics."""

    def __init__(
        self,
        ledger: BorrowLedgerPort,
        catalog: CatalogPort,
        limit: int = DEFAULT_LIMIT,
        read_timeout: Optional[float] = 5.0,
    ) -> None:
        self._ledger = ledger
        self._catalog = catalog
        self._limit = limit
        self._read_timeout = read_timeout
        self._tiers: list[tuple[str, Tier]] = [
            ("peers", self._peer_frequency),
            ("category", self._category_affinity),
            ("author", self._author_affinity),
            ("popular", self._global_popularity),
        ]

    async def recommend(
        self,
        borrower: Optional[str],
        limit: Optional[int] = None,
    ) -> list[Recommendation]:
        """Return at most ``limit`` available books the borrower does not currently hold."""
        if not borrower or not borrower.strip():
            return []
        limit = self._limit if limit is None else max(0, min(limit, self._limit))
        if limit == 0:
            return []

        try:
            results = await self._recommend(borrower.strip(), limit)
        except Exception:
            logger.exception("Recommendation failed for %s; returning none", borrower)
            return []

        logger.info(
            "Recommended %d book(s) for %s: %s",
            len(results),
            borrower,
            ", ".join(f"{r.entry.isbn}[{r.reason}]" for r in results) or "-",
        )
        return results

    async def _recommend(self, borrower: str, limit: int) -> list[Recommendation]:
        context = await self._build_context(borrower)

        chosen: list[Recommendation] = []
        seen: set[str] = set(context.own_isbns)
        for reason, tier in self._tiers:
            remaining = limit - len(chosen)
            if remaining <= 0:
                break
            try:
                candidates = await tier(context, frozenset(seen), remaining)
            except UpstreamReadFailure as exc:
                logger.warning("Tier '%s' skipped for %s: %s", reason, borrower, exc)
                continue

            added = 0
            for entry in candidates:
                if entry.isbn in seen or not entry.is_available:
                    continue
                chosen.append(Recommendation(entry=entry, reason=reason))
                seen.add(entry.isbn)
                added += 1
                if len(chosen) >= limit:
                    break
            logger.debug("Tier '%s' added %d for %s", reason, added, borrower)

        return chosen

    async def _build_context(self, borrower: str) -> RecommendationContext:
        try:
            own_records = await self._read(
                "own active borrows", self._ledger.active_for_borrower(borrower)
            )
        except UpstreamReadFailure as exc:
            logger.warning("Treating %s as having no history: %s", borrower, exc)
            return RecommendationContext(borrower=borrower)

        own_isbns = frozenset(r.book_isbn for r in own_records if r.is_active)
        if not own_isbns:
            return RecommendationContext(borrower=borrower)

        try:
            own_books = await self._read(
                "own book details", self._catalog.by_isbns(own_isbns)
            )
        except UpstreamReadFailure as exc:
            logger.warning("No category/author context for %s: %s", borrower, exc)
            own_books = []

        return RecommendationContext(
            borrower=borrower,
            own_isbns=own_isbns,
            own_books=tuple(own_books),
        )

    async def _read(self, what: str, pending: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(pending, timeout=self._read_timeout)
        except asyncio.TimeoutError:
            raise UpstreamReadFailure(f"{what}: timed out after {self._read_timeout}s") from None
        except Exception as exc:
            raise UpstreamReadFailure(f"{what}: {exc}") from exc

    # ── Tiers ──────────────────────────────────────

    async def _peer_frequency(
        self, context: RecommendationContext, exclude: Collection[str], remaining: int
    ) -> list[CatalogEntry]:
        if not context.own_isbns:
            return []

        overlap = await self._read(
            "peer borrows",
            self._ledger.active_for_books(context.own_isbns, exclude_borrower=context.borrower),
        )
        peers = {r.borrower for r in overlap if r.borrower != context.borrower}
        if not peers:
            return []

        peer_records = await self._read(
            "peer interests", self._ledger.active_for_borrowers(peers)
        )
        ranked = rank_by_frequency(peer_records, exclude)[:remaining]
        if not ranked:
            return []

        available = await self._read(
            "peer book details", self._catalog.available_by_isbns(ranked)
        )
        # the catalog does not keep rank order
        by_isbn = {entry.isbn: entry for entry in available}
        return [by_isbn[isbn] for isbn in ranked if isbn in by_isbn]

    async def _category_affinity(
        self, context: RecommendationContext, exclude: Collection[str], remaining: int
    ) -> list[CatalogEntry]:
        categories = context.categories
        if not categories:
            return []
        return await self._read(
            "category matches",
            self._catalog.available_in_categories(categories, exclude, remaining),
        )

    async def _author_affinity(
        self, context: RecommendationContext, exclude: Collection[str], remaining: int
    ) -> list[CatalogEntry]:
        authors = context.authors
        if not authors:
            return []
        return await self._read(
            "author matches",
            self._catalog.available_by_authors(authors, exclude, remaining),
        )

    async def _global_popularity(
        self, context: RecommendationContext, exclude: Collection[str], remaining: int
    ) -> list[CatalogEntry]:
        return await self._read(
            "most available books", self._catalog.most_available(exclude, remaining)
        )
