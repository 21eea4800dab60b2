"""
Search Orchestrator
validate -> aggregate -> normalize -> filter/sort -> envelope
"""
from datetime import datetime
from typing import Any, Callable, Optional
import logging

from pydantic import ValidationError as SchemaError

from ..models.schemas import SearchQuery
from ..models.torrent_record import SearchResultsEnvelope
from ..sources.base import SearchAggregator
from .errors import UpstreamError, ValidationError
from .normalizer import display_category, normalize_hits
from .ranking import filter_and_sort

logger = logging.getLogger(__name__)


def parse_search_query(payload: Any) -> SearchQuery:
    if isinstance(payload, SearchQuery):
        return payload
    try:
        return SearchQuery.model_validate(payload)
    except SchemaError as exc:
        raise ValidationError("Invalid search parameters.", detail=str(exc)) from exc


class SearchService:
    """Runs one search per call; every call re-queries the providers."""

    MAX_RESULTS = 50

    def __init__(self, aggregator: SearchAggregator, clock: Optional[Callable[[], datetime]] = None):
        self.aggregator = aggregator
        self._clock = clock

    def search(self, payload: Any) -> SearchResultsEnvelope:
        query = parse_search_query(payload)
        category = display_category(query.category)
        logger.info("Search request: %r category=%s sortBy=%s", query.search, category, query.sortBy)

        try:
            raw_hits = self.aggregator.search(query.search, category, self.MAX_RESULTS)
        except Exception as exc:
            logger.error("Search providers failed for %r: %s", query.search, exc)
            raise UpstreamError(detail=str(exc)) from exc

        now = self._clock() if self._clock else None
        records = normalize_hits(raw_hits or [], category, now=now)
        hits = filter_and_sort(records, min_seeders=query.minSeeders, sort_by=query.sortBy, now=now)
        logger.info("Returning %d of %d results for %r", len(hits), len(records), query.search)
        return SearchResultsEnvelope(hits=hits)
