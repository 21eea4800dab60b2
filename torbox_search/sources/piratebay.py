"""
PirateBay Search Source
JSON API first, HTML mirrors as fallback
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from urllib.parse import quote
import logging

import requests
from bs4 import BeautifulSoup

from ..core.errors import ProviderUnavailableError
from ..models.torrent_record import RawHit
from .base import BaseSource, dedupe_urls

logger = logging.getLogger(__name__)

EMPTY_INFOHASH = "0" * 40

# Display category -> TPB top-level category id.
CATEGORY_IDS = {
    "all": 0,
    "audio": 100,
    "music": 100,
    "video": 200,
    "movies": 200,
    "tv": 200,
    "applications": 300,
    "apps": 300,
    "games": 400,
    "other": 600,
}


class PirateBaySource(BaseSource):
    """PirateBay torrent search source"""

    name = "ThePirateBay"

    MIRRORS = [
        "https://thepiratebay.org",
        "https://tpb.party",
        "https://thepiratebay.zone",
        "https://pirateproxylive.org",
    ]
    API_ENDPOINTS = [
        "https://apibay.org",
    ]
    TRACKERS = [
        "udp://tracker.opentrackr.org:1337/announce",
        "udp://open.stealth.si:80/announce",
        "udp://tracker.torrent.eu.org:451/announce",
        "udp://exodus.desync.com:6969/announce",
    ]

    def __init__(self, settings=None):
        self.settings = settings
        self.mirrors = list(self.MIRRORS)
        self.api_endpoints = list(self.API_ENDPOINTS)
        self._timeout_seconds = 12.0
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
            'Accept': 'text/html,application/xhtml+xml,application/xml',
        })
        self.reload_from_settings()

    def reload_from_settings(self):
        """Configured mirrors and API endpoints go in front of the built-in ones."""
        custom_mirrors = []
        custom_api = []
        if self.settings is not None:
            custom_mirrors = list(self.settings.get("piratebay_mirror_order", []) or [])
            custom_api = list(self.settings.get("piratebay_api_endpoints", []) or [])
            self._timeout_seconds = float(self.settings.get("piratebay_request_timeout_seconds", 12.0) or 12.0)
        self.mirrors = dedupe_urls(custom_mirrors + self.MIRRORS)
        self.api_endpoints = dedupe_urls(custom_api + self.API_ENDPOINTS)

    @staticmethod
    def category_id(category: str) -> int:
        return CATEGORY_IDS.get((category or "all").strip().lower(), 0)

    def search(self, query: str, category: str = "All", limit: int = 50) -> List[RawHit]:
        """
        Search PirateBay.

        1. apibay JSON endpoint (stable across mirror churn)
        2. HTML search page on each mirror, only when the API is unreachable

        Raises ProviderUnavailableError when neither answered.
        """
        cat = self.category_id(category)

        api_hits, api_error = self._search_via_api(query, cat)
        if api_hits is not None:
            return api_hits[:limit]

        encoded_query = quote(query)
        last_exception = None
        answered = False
        for mirror in self.mirrors:
            search_url = f"{mirror}/search/{encoded_query}/1/99/{cat}"
            try:
                response = self.session.get(search_url, timeout=self._timeout_seconds)
                response.raise_for_status()
                if self._looks_like_parked_or_blocked_page(response.text):
                    last_exception = Exception("Mirror returned parked/block page.")
                    continue
                soup = BeautifulSoup(response.content, 'html.parser')
                answered = True
                hits = self._parse_search_page(soup, mirror)
                if hits:
                    return hits[:limit]
            except requests.RequestException as e:
                last_exception = e
                logger.warning("PirateBay search error (%s): %s", mirror, e)
                continue

        if answered:
            return []
        raise ProviderUnavailableError(
            f"All PirateBay mirrors failed: {last_exception or api_error or 'no mirrors configured'}"
        )

    def _search_via_api(self, query: str, cat: int) -> Tuple[Optional[List[RawHit]], str]:
        """Returns (hits, "") on an answer, (None, last error) when no endpoint answered."""
        params = {"q": query}
        if cat:
            params["cat"] = str(cat)
        error = ""
        for base in self.api_endpoints:
            try:
                response = self.session.get(
                    f"{base}/q.php",
                    params=params,
                    timeout=self._timeout_seconds,
                    headers={"Accept": "application/json,text/plain,*/*"},
                )
                response.raise_for_status()
                rows = response.json()
                if not isinstance(rows, list):
                    error = f"{base} returned a non-list payload"
                    continue
                # A well-formed empty answer is a real "no results"; no HTML fallback.
                return self._parse_api_rows(rows), ""
            except (requests.RequestException, ValueError) as e:
                error = str(e)
                logger.warning("PirateBay API error (%s): %s", base, e)
                continue
        return None, error

    def _parse_api_rows(self, rows: List[dict]) -> List[RawHit]:
        details_base = self.mirrors[0]
        hits: List[RawHit] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            name = str(row.get("name") or "").strip()
            infohash = str(row.get("info_hash") or "").strip().upper()
            if not name or len(infohash) != 40 or infohash == EMPTY_INFOHASH:
                continue
            hits.append(RawHit(
                title=name,
                time=self._epoch_to_iso(row.get("added")),
                seeds=str(row.get("seeders") or "0"),
                peers=str(row.get("leechers") or "0"),
                size=self.format_size(row.get("size")),
                magnet=self._build_magnet(infohash, name),
                desc=f"{details_base}/description.php?id={row.get('id', '')}",
                provider=self.name,
            ))
        return hits

    @staticmethod
    def _epoch_to_iso(value) -> Optional[str]:
        try:
            stamp = int(value)
        except (TypeError, ValueError):
            return None
        if stamp <= 0:
            return None
        return datetime.fromtimestamp(stamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")

    @staticmethod
    def format_size(value) -> Optional[str]:
        """Format a byte count the way the HTML listing does ("1.50 GiB")"""
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return None
        for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
            if amount < 1024.0:
                return f"{amount:.2f} {unit}"
            amount /= 1024.0
        return f"{amount:.2f} PiB"

    def _build_magnet(self, infohash: str, title: str) -> str:
        tr = "".join([f"&tr={quote(t, safe='')}" for t in self.TRACKERS])
        return f"magnet:?xt=urn:btih:{infohash}&dn={quote(title, safe='')}{tr}"

    def _looks_like_parked_or_blocked_page(self, html: str) -> bool:
        low = (html or "").lower()
        blocked_signals = [
            "fastpanel",
            "view more possible reasons",
            "captcha",
            "just a moment",
            "ddos protection",
        ]
        return any(sig in low for sig in blocked_signals)

    def _parse_search_page(self, soup: BeautifulSoup, mirror: str) -> List[RawHit]:
        """Parse the page into hits across old/new TPB layouts."""
        hits: List[RawHit] = []
        # Older mirrors include <tbody>; newer mirrors often don't.
        for row in soup.select("#searchResult tr"):
            hit = self._parse_row(row, mirror)
            if hit:
                hits.append(hit)
        return hits

    def _parse_row(self, row, mirror: str) -> Optional[RawHit]:
        if not row.find_all("td"):
            return None

        title_elem = row.select_one('.detName a') or row.select_one('td:nth-of-type(2) a[href*="/torrent/"]')
        magnet_elem = row.select_one('a[href^="magnet:"]')
        if not title_elem or not magnet_elem:
            return None

        def _text_from_selectors(selectors):
            for selector in selectors:
                elem = row.select_one(selector)
                if elem:
                    return elem.get_text(strip=True)
            return None

        # Current layout first, legacy layout second.
        seeds = _text_from_selectors(['td:nth-of-type(6)', 'td:nth-of-type(3)'])
        peers = _text_from_selectors(['td:nth-of-type(7)', 'td:nth-of-type(4)'])

        size_text = None
        uploaded = None
        desc_elem = row.select_one('.detDesc')
        if desc_elem:
            # "Uploaded 03-05 2021, Size 1.5 GiB, ULed by ..."
            for part in desc_elem.get_text().split(','):
                part = part.strip()
                if part.startswith('Size'):
                    size_text = part[len('Size'):].strip()
                elif part.startswith('Uploaded'):
                    uploaded = part[len('Uploaded'):].strip()
        else:
            size_text = _text_from_selectors(['td:nth-of-type(5)'])
            uploaded = _text_from_selectors(['td:nth-of-type(3)'])

        href = title_elem.get('href', '')
        return RawHit(
            title=title_elem.get_text(strip=True),
            time=uploaded,
            seeds=seeds,
            peers=peers,
            size=size_text,
            magnet=magnet_elem['href'],
            desc=href if href.startswith("http") else f"{mirror}{href}",
            provider=self.name,
        )
