"""
Filter/Sort Stage
Minimum-seeders filter and the three result orderings.
"""
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import re

from ..models.torrent_record import TorrentRecord

_ORDINAL_PATTERN = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)
_EPOCH_PATTERN = re.compile(r"^\d{9,11}$")

# Listing formats seen on provider pages after ordinals and dots are removed.
_DATE_FORMATS = (
    "%b %d '%y",
    "%b %d '%y %I:%M%p",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%m-%d %Y",
)
_TIME_ONLY_FORMATS = ("%I:%M%p", "%I:%M %p", "%H:%M")


def parse_date(value: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Best-effort timestamp parse; returns an aware UTC datetime or None"""
    text = str(value or "").strip()
    if not text:
        return None

    if _EPOCH_PATTERN.match(text):
        return datetime.fromtimestamp(int(text), tz=timezone.utc)

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return _as_utc(parsed)
    except ValueError:
        pass

    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass

    cleaned = _ORDINAL_PATTERN.sub(r"\1", text).replace(".", "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    for fmt in _DATE_FORMATS:
        try:
            return _as_utc(datetime.strptime(cleaned, fmt))
        except ValueError:
            continue

    # Same-day listings only show a clock time.
    today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    for fmt in _TIME_ONLY_FORMATS:
        try:
            clock = datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
        return today.replace(hour=clock.hour, minute=clock.minute, second=0, microsecond=0)
    return None


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _date_sort_key(now: Optional[datetime]) -> Callable[[TorrentRecord], Tuple[int, float]]:
    def key(record: TorrentRecord) -> Tuple[int, float]:
        parsed = parse_date(record.date, now=now)
        if parsed is None:
            return (0, 0.0)
        return (1, parsed.timestamp())
    return key


def filter_by_seeders(records: Sequence[TorrentRecord], min_seeders: Optional[int]) -> List[TorrentRecord]:
    if min_seeders is None:
        return list(records)
    return [record for record in records if record.seeders >= min_seeders]


def sort_records(records: Sequence[TorrentRecord], sort_by: str = "date", now: Optional[datetime] = None) -> List[TorrentRecord]:
    """
    Stable descending sort.

    ``sorted(reverse=True)`` keeps ties in input order, so repeated sorts
    by the same key are idempotent. Unparseable dates sort last.
    """
    keys: Dict[str, Callable[[TorrentRecord], object]] = {
        "seeders": lambda record: record.seeders,
        "size": lambda record: record.bytes,
    }
    key = keys.get(sort_by) or _date_sort_key(now)
    return sorted(records, key=key, reverse=True)


def filter_and_sort(
    records: Sequence[TorrentRecord],
    min_seeders: Optional[int] = None,
    sort_by: str = "date",
    now: Optional[datetime] = None,
) -> List[TorrentRecord]:
    return sort_records(filter_by_seeders(records, min_seeders), sort_by, now=now)
