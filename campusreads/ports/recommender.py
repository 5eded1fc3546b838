"""Recommender port — abstract interface for the recommendation engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from campusreads.domain.entities import CatalogEntry


@dataclass(frozen=True)
class Recommendation:
    """A suggested book and the tier that produced it."""

    entry: CatalogEntry
    reason: str


class RecommenderPort(ABC):
    """Abstraction for the book recommendation engine."""

    @abstractmethod
    async def recommend(
        self,
        borrower: Optional[str],
        limit: Optional[int] = None,
    ) -> list[Recommendation]:
        """Return ranked, available book suggestions for a borrower."""
        ...
