import unittest
from datetime import datetime, timezone

from torbox_search.core.ranking import filter_and_sort, filter_by_seeders, parse_date, sort_records
from torbox_search.models.torrent_record import TorrentRecord

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _record(rid, seeders=0, size=0, date="2024-01-01T00:00:00Z"):
    return TorrentRecord(
        id=rid,
        title=rid,
        category="All",
        category_id=[1000000],
        bytes=size,
        seeders=seeders,
        peers=0,
        date=date,
        last_seen="2024-06-01T12:00:00.000Z",
        magnet_url="",
        hash="",
        cached_origin="Multiple Sources",
    )


class TestFilter(unittest.TestCase):
    def test_min_seeders_keeps_threshold_and_above(self):
        records = [_record("a", seeders=1), _record("b", seeders=5), _record("c", seeders=10)]
        self.assertEqual([r.id for r in filter_by_seeders(records, 5)], ["b", "c"])

    def test_absent_min_seeders_keeps_everything(self):
        records = [_record("a"), _record("b", seeders=3)]
        self.assertEqual(filter_by_seeders(records, None), records)


class TestSort(unittest.TestCase):
    def test_seeders_descending_with_stable_ties(self):
        records = [_record("a", 5), _record("b", 9), _record("c", 5), _record("d", 1)]
        self.assertEqual([r.id for r in sort_records(records, "seeders")], ["b", "a", "c", "d"])

    def test_size_descending(self):
        records = [_record("small", size=10), _record("big", size=1000), _record("mid", size=100)]
        self.assertEqual([r.id for r in sort_records(records, "size")], ["big", "mid", "small"])

    def test_date_newest_first_and_unparseable_last(self):
        records = [
            _record("old", date="2020-01-01T00:00:00Z"),
            _record("junk", date="sometime"),
            _record("new", date="2024-05-01T00:00:00Z"),
            _record("epoch", date="1614938400"),
        ]
        ordered = sort_records(records, "date", now=NOW)
        self.assertEqual([r.id for r in ordered], ["new", "epoch", "old", "junk"])

    def test_unknown_sort_key_falls_back_to_date(self):
        records = [_record("old", date="2020-01-01"), _record("new", date="2023-01-01")]
        self.assertEqual([r.id for r in sort_records(records, "bogus")], ["new", "old"])

    def test_sorting_is_idempotent(self):
        records = [_record(str(i), seeders=i % 3, size=i * 7 % 5) for i in range(12)]
        for key in ("seeders", "size", "date"):
            once = sort_records(records, key, now=NOW)
            self.assertEqual(sort_records(once, key, now=NOW), once)

    def test_filter_and_sort_commute_for_seeders(self):
        records = [_record(str(i), seeders=(i * 5) % 7) for i in range(15)]
        sorted_then_filtered = filter_by_seeders(sort_records(records, "seeders"), 3)
        filtered_then_sorted = sort_records(filter_by_seeders(records, 3), "seeders")
        self.assertEqual(sorted_then_filtered, filtered_then_sorted)
        self.assertEqual(filter_and_sort(records, 3, "seeders"), filtered_then_sorted)

    def test_input_is_not_mutated(self):
        records = [_record("a", 1), _record("b", 2)]
        snapshot = list(records)
        result = filter_and_sort(records, None, "seeders")
        self.assertEqual(records, snapshot)
        self.assertIsNot(result, records)


class TestParseDate(unittest.TestCase):
    def test_iso_with_z(self):
        self.assertEqual(parse_date("2021-03-05T10:00:00Z"), datetime(2021, 3, 5, 10, tzinfo=timezone.utc))

    def test_epoch_seconds(self):
        self.assertEqual(parse_date("1614938400"), datetime(2021, 3, 5, 10, tzinfo=timezone.utc))

    def test_rfc_2822(self):
        self.assertEqual(
            parse_date("Fri, 05 Mar 2021 10:00:00 +0000"),
            datetime(2021, 3, 5, 10, tzinfo=timezone.utc),
        )

    def test_listing_formats(self):
        self.assertEqual(parse_date("Mar. 5th '21"), datetime(2021, 3, 5, tzinfo=timezone.utc))
        self.assertEqual(parse_date("03-05\xa02021"), datetime(2021, 3, 5, tzinfo=timezone.utc))

    def test_clock_time_means_today(self):
        self.assertEqual(parse_date("3:43pm", now=NOW), datetime(2024, 6, 1, 15, 43, tzinfo=timezone.utc))

    def test_garbage_is_none(self):
        self.assertIsNone(parse_date("sometime"))
        self.assertIsNone(parse_date(""))


if __name__ == "__main__":
    unittest.main()
