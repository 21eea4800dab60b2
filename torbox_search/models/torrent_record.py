"""
Torrent Record Models
Raw provider hits and the canonical record shape returned to clients
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class RawHit:
    """
    One search hit as a provider reports it.

    Every field is optional text; providers disagree on formats
    (human size strings, string seed counts, free-text timestamps).
    """
    title: Optional[str] = None
    time: Optional[str] = None
    seeds: Optional[str] = None
    peers: Optional[str] = None
    size: Optional[str] = None
    magnet: Optional[str] = None
    desc: Optional[str] = None
    provider: Optional[str] = None


@dataclass(frozen=True)
class TorrentRecord:
    """Normalized search hit"""
    id: str
    title: str
    category: str
    category_id: List[int]
    bytes: int
    seeders: int
    peers: int
    date: str
    last_seen: str
    magnet_url: str
    hash: str
    cached_origin: str
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "categoryId": list(self.category_id),
            "bytes": self.bytes,
            "seeders": self.seeders,
            "peers": self.peers,
            "date": self.date,
            "lastSeen": self.last_seen,
            "magnetUrl": self.magnet_url,
            "hash": self.hash,
            "cachedOrigin": self.cached_origin,
            "details": self.details,
        }


@dataclass
class SearchResultsEnvelope:
    hits: List[TorrentRecord] = field(default_factory=list)
    relation: str = "eq"
    max_score: Optional[float] = None

    @property
    def total(self) -> int:
        return len(self.hits)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": {"value": self.total, "relation": self.relation},
            "hits": [hit.to_dict() for hit in self.hits],
            "maxScore": self.max_score,
        }
