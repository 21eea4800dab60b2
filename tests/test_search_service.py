import unittest
from datetime import datetime, timezone

from torbox_search.core.errors import SourceError, UpstreamError, ValidationError
from torbox_search.core.search_service import SearchService, parse_search_query
from torbox_search.models.torrent_record import RawHit

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class StubAggregator:
    def __init__(self, hits=None, error=None):
        self.hits = hits or []
        self.error = error
        self.calls = []

    def search(self, text, category, limit):
        self.calls.append((text, category, limit))
        if self.error is not None:
            raise self.error
        return list(self.hits)


UBUNTU_HITS = [
    RawHit(title="ubuntu desktop", size="700 MB", seeds="5", time="2024-01-01T00:00:00Z",
           magnet="magnet:?xt=urn:btih:" + "1" * 40),
    RawHit(title="ubuntu dvd", size="4700 MB", seeds="50", time="2023-01-01T00:00:00Z",
           magnet="magnet:?xt=urn:btih:" + "2" * 40),
    RawHit(title="ubuntu server", size="1 GB", seeds="20", time="2024-05-01T00:00:00Z",
           magnet="magnet:?xt=urn:btih:" + "3" * 40),
]


class TestSearchValidation(unittest.TestCase):
    def test_empty_search_never_reaches_providers(self):
        aggregator = StubAggregator(UBUNTU_HITS)
        service = SearchService(aggregator)
        for payload in ({"search": ""}, {}, None, {"search": None}, "ubuntu"):
            with self.assertRaises(ValidationError) as ctx:
                service.search(payload)
            self.assertEqual(ctx.exception.status_code, 400)
            self.assertEqual(ctx.exception.to_payload(), {"message": "Invalid search parameters."})
        self.assertEqual(aggregator.calls, [])

    def test_rejects_bad_options(self):
        for payload in (
            {"search": "x", "sortBy": "name"},
            {"search": "x", "minSeeders": -1},
            {"search": "x", "searchType": "regex"},
        ):
            with self.assertRaises(ValidationError):
                parse_search_query(payload)

    def test_defaults_and_legacy_exact_alias(self):
        query = parse_search_query({"search": "x", "searchType": "100%"})
        self.assertEqual(query.searchType, "exact")
        self.assertEqual(query.searchField, "title")
        self.assertEqual(query.sortBy, "date")
        self.assertIsNone(query.minSeeders)


class TestSearchPipeline(unittest.TestCase):
    def test_sort_by_size(self):
        aggregator = StubAggregator(UBUNTU_HITS)
        envelope = SearchService(aggregator, clock=lambda: NOW).search({"search": "ubuntu", "sortBy": "size"})

        self.assertEqual(envelope.total, 3)
        sizes = [hit.bytes for hit in envelope.hits]
        self.assertEqual(sizes, sorted(sizes, reverse=True))
        self.assertEqual([hit.title for hit in envelope.hits], ["ubuntu dvd", "ubuntu server", "ubuntu desktop"])

        payload = envelope.to_dict()
        self.assertEqual(payload["total"], {"value": 3, "relation": "eq"})
        self.assertIsNone(payload["maxScore"])
        self.assertEqual(len(payload["hits"]), 3)

    def test_default_sort_is_newest_first(self):
        envelope = SearchService(StubAggregator(UBUNTU_HITS), clock=lambda: NOW).search({"search": "ubuntu"})
        self.assertEqual([hit.title for hit in envelope.hits], ["ubuntu server", "ubuntu desktop", "ubuntu dvd"])

    def test_min_seeders_filter_keeps_total_in_step(self):
        envelope = SearchService(StubAggregator(UBUNTU_HITS)).search(
            {"search": "ubuntu", "minSeeders": 20, "sortBy": "seeders"}
        )
        self.assertEqual([hit.seeders for hit in envelope.hits], [50, 20])
        self.assertEqual(envelope.to_dict()["total"]["value"], 2)

    def test_category_is_capitalized_before_aggregation(self):
        aggregator = StubAggregator(UBUNTU_HITS)
        envelope = SearchService(aggregator).search({"search": "ubuntu", "category": "movies"})
        SearchService(aggregator).search({"search": "ubuntu"})
        self.assertEqual(aggregator.calls, [("ubuntu", "Movies", 50), ("ubuntu", "All", 50)])
        self.assertTrue(all(hit.category == "Movies" for hit in envelope.hits))

    def test_no_hits_is_an_empty_envelope(self):
        envelope = SearchService(StubAggregator([])).search({"search": "nothing"})
        self.assertEqual(envelope.to_dict(), {"total": {"value": 0, "relation": "eq"}, "hits": [], "maxScore": None})

    def test_provider_failure_is_upstream_error(self):
        for error in (SourceError("all down"), RuntimeError("boom")):
            service = SearchService(StubAggregator(error=error))
            with self.assertRaises(UpstreamError) as ctx:
                service.search({"search": "ubuntu"})
            self.assertEqual(ctx.exception.status_code, 500)
            self.assertEqual(ctx.exception.to_payload(), {
                "message": "Search services temporarily unavailable. Please try again later.",
                "error": "All search providers failed",
            })

    def test_every_call_queries_again(self):
        aggregator = StubAggregator(UBUNTU_HITS)
        service = SearchService(aggregator)
        service.search({"search": "ubuntu"})
        service.search({"search": "ubuntu"})
        self.assertEqual(len(aggregator.calls), 2)


if __name__ == "__main__":
    unittest.main()
