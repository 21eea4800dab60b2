"""
Source SDK
Base interface for search providers and the aggregation boundary.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Protocol, Sequence

from ..models.torrent_record import RawHit


def dedupe_urls(urls: Sequence[str]) -> List[str]:
    """Strip trailing slashes and drop repeats, keeping first-seen order."""
    deduped: List[str] = []
    for url in urls:
        url = (url or "").strip().rstrip("/")
        if url and url not in deduped:
            deduped.append(url)
    return deduped


class SearchAggregator(Protocol):
    """Anything that can answer ``search(text, category, limit)``."""

    def search(self, text: str, category: str, limit: int) -> Sequence[RawHit]:
        ...


class BaseSource(ABC):
    """
    Contract for a single provider.

    One instance serves concurrent searches, so ``search`` keeps its
    per-call state local. An unreachable provider raises
    ProviderUnavailableError; an empty list is a real "no results".
    """
    name = "UnnamedSource"

    @abstractmethod
    def search(self, query: str, category: str = "All", limit: int = 50) -> List[RawHit]:
        """Return raw hits for a query, at most ``limit`` of them."""
        raise NotImplementedError

    def reload_from_settings(self) -> None:
        """Optional hook called when source settings are reloaded."""
        return None
