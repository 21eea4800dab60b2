"""
Result Normalizer
Maps heterogeneous provider hits onto TorrentRecord.

Bad fields never raise: each one falls back to a default so a single
malformed hit cannot fail a whole search.
"""
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional
import math
import re

from ..models.torrent_record import RawHit, TorrentRecord

DEFAULT_CATEGORY_ID = [1000000]
UNKNOWN_TITLE = "Unknown Title"
DEFAULT_ORIGIN = "Multiple Sources"
MEGABYTE = 1024 * 1024

_INFOHASH_PATTERN = re.compile(r"btih:([a-fA-F0-9]{40})")
_LEADING_INT_PATTERN = re.compile(r"^[+-]?\d+")
_SIZE_PATTERN = re.compile(r"(\d[\d,]*(?:\.\d+)?)\s*([KMGT]i?B|B)\b", re.IGNORECASE)

# Binary multiples for every suffix so "700 MB" matches the legacy megabyte rule.
SIZE_MULTIPLIERS = {
    "B": 1,
    "KB": 1024, "KIB": 1024,
    "MB": 1024 ** 2, "MIB": 1024 ** 2,
    "GB": 1024 ** 3, "GIB": 1024 ** 3,
    "TB": 1024 ** 4, "TIB": 1024 ** 4,
}


def utc_now_iso(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def display_category(category: Optional[str]) -> str:
    """Capitalize a requested category; no category (or "all") means "All"."""
    if not category or category == "all":
        return "All"
    return category[0].upper() + category[1:]


def extract_infohash(magnet: Optional[str]) -> str:
    """Return the 40-char hex info-hash in a magnet's btih segment, case preserved"""
    if not magnet:
        return ""
    match = _INFOHASH_PATTERN.search(magnet)
    return match.group(1) if match else ""


def parse_count(value: Any) -> int:
    """Parse a seed/peer count; anything unparseable is 0"""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    text = str(value).strip().replace(",", "")
    match = _LEADING_INT_PATTERN.match(text)
    return int(match.group(0)) if match else 0


def parse_size_bytes(size: Any) -> int:
    """
    Estimate a byte count from a provider size field.

    A recognised unit ("1.5 GiB", "700 MB") scales the number. A bare
    numeral is read as megabytes after stripping every non-digit.
    """
    if size is None or isinstance(size, bool):
        return 0
    if isinstance(size, float) and not math.isfinite(size):
        return 0
    text = str(size).strip()
    if not text:
        return 0
    match = _SIZE_PATTERN.search(text)
    if match:
        number = float(match.group(1).replace(",", ""))
        return int(number * SIZE_MULTIPLIERS[match.group(2).upper()])
    digits = re.sub(r"[^0-9]", "", text)
    if not digits:
        return 0
    return int(digits) * MEGABYTE


def _field(hit: Any, name: str) -> Any:
    if isinstance(hit, Mapping):
        return hit.get(name)
    return getattr(hit, name, None)


def normalize_hit(hit: Any, index: int, category: str, now: Optional[datetime] = None) -> TorrentRecord:
    timestamp = utc_now_iso(now)
    raw_title = _field(hit, "title")
    title = str(raw_title) if raw_title else UNKNOWN_TITLE
    magnet = str(_field(hit, "magnet") or "")
    when = _field(hit, "time")
    provider = _field(hit, "provider")
    desc = _field(hit, "desc")

    return TorrentRecord(
        id=magnet or f"{title}-{index}",
        title=title,
        category=category,
        category_id=list(DEFAULT_CATEGORY_ID),
        bytes=parse_size_bytes(_field(hit, "size")),
        seeders=parse_count(_field(hit, "seeds")),
        peers=parse_count(_field(hit, "peers")),
        date=str(when) if when else timestamp,
        last_seen=timestamp,
        magnet_url=magnet,
        hash=extract_infohash(magnet),
        cached_origin=str(provider) if provider else DEFAULT_ORIGIN,
        details=str(desc) if desc else "",
    )


def normalize_hits(hits: Iterable[RawHit], category: str, now: Optional[datetime] = None) -> List[TorrentRecord]:
    """Normalize every hit; ``index`` is the hit's position in the raw list."""
    moment = now or datetime.now(timezone.utc)
    return [normalize_hit(hit, index, category, now=moment) for index, hit in enumerate(hits)]
