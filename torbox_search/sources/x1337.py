"""
1337x Search Source
Listing page per mirror, magnet links pulled from detail pages
"""
from typing import List, Optional
from urllib.parse import quote
import logging
import time

import requests
from bs4 import BeautifulSoup

from ..core.errors import ProviderUnavailableError
from ..models.torrent_record import RawHit
from .base import BaseSource, dedupe_urls

logger = logging.getLogger(__name__)

# Display category -> 1337x category-search slug.
CATEGORY_SLUGS = {
    "movies": "Movies",
    "tv": "TV",
    "games": "Games",
    "music": "Music",
    "apps": "Apps",
    "applications": "Apps",
    "documentaries": "Documentaries",
    "anime": "Anime",
    "other": "Other",
}


class X1337Source(BaseSource):
    """1337x torrent search source"""

    name = "1337x"

    MIRRORS = [
        "https://1337x.to",
        "https://www.1337x.to",
        "https://1337x.st",
        "https://x1337x.ws",
        "https://x1337x.eu",
        "https://1337xx.to",
    ]

    def __init__(self, settings=None):
        self.settings = settings
        self.mirrors = list(self.MIRRORS)
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
            'Accept': 'text/html,application/xhtml+xml,application/xml',
            'Accept-Language': 'en-US,en;q=0.9',
        })
        self._detail_timeout_seconds = 6.0
        self._detail_budget_seconds = 15.0
        self._max_detail_fetches = 20
        self.reload_from_settings()

    def reload_from_settings(self):
        """Configured mirrors go in front of the built-in ones."""
        custom_mirrors = []
        if self.settings is not None:
            custom_mirrors = list(self.settings.get("x1337_mirror_order", []) or [])
            self._detail_timeout_seconds = float(self.settings.get("x1337_detail_timeout_seconds", 6.0) or 6.0)
            self._detail_budget_seconds = float(self.settings.get("x1337_detail_budget_seconds", 15.0) or 15.0)
            self._max_detail_fetches = int(self.settings.get("x1337_max_detail_fetches", 20) or 20)
        self.mirrors = dedupe_urls(custom_mirrors + self.MIRRORS)

    @staticmethod
    def search_path(encoded_query: str, category: str) -> str:
        slug = CATEGORY_SLUGS.get((category or "").strip().lower())
        if slug:
            return f"/category-search/{encoded_query}/{slug}/1/"
        return f"/search/{encoded_query}/1/"

    def search(self, query: str, category: str = "All", limit: int = 50) -> List[RawHit]:
        """Try mirrors in order; raises ProviderUnavailableError when none answered."""
        encoded_query = quote(query)
        errors = []
        answered = False

        for mirror in self.mirrors:
            try:
                hits = self._search_on_mirror(mirror, encoded_query, category, limit)
            except requests.RequestException as e:
                errors.append(str(e))
                logger.warning("1337x search error (%s): %s", mirror, e)
                continue
            answered = True
            if hits:
                return hits

        if answered:
            return []
        if errors and all("Cloudflare challenge" in e for e in errors):
            raise ProviderUnavailableError("Blocked by Cloudflare challenge on all 1337x mirrors.")
        raise ProviderUnavailableError(f"All 1337x mirrors failed: {errors[-1] if errors else 'no mirrors configured'}")

    def _search_on_mirror(self, mirror: str, encoded_query: str, category: str, limit: int) -> List[RawHit]:
        """Try a single mirror and parse search rows."""
        response = self.session.get(f"{mirror}{self.search_path(encoded_query, category)}", timeout=15)

        # Most mirrors sit behind Cloudflare and can answer with a challenge page.
        if response.status_code == 403 and "Just a moment" in response.text:
            raise requests.HTTPError("Cloudflare challenge (403)", response=response)

        response.raise_for_status()
        soup = BeautifulSoup(response.content, 'html.parser')
        candidates = []
        for row in soup.select('.table-list tbody tr'):
            candidate = self._parse_listing_row(row, mirror)
            if candidate:
                candidates.append(candidate)

        hits: List[RawHit] = []
        deadline = time.monotonic() + max(5.0, self._detail_budget_seconds)
        max_fetches = max(1, min(limit, self._max_detail_fetches))

        for candidate in candidates[:max_fetches]:
            if time.monotonic() >= deadline:
                logger.warning("1337x detail-page lookup timed out on %s; returning %d partial results", mirror, len(hits))
                break
            remaining = max(0.5, deadline - time.monotonic())
            candidate.magnet = self._get_magnet_link(
                candidate.desc,
                timeout=min(max(1.0, self._detail_timeout_seconds), remaining),
            )
            # Hits without a magnet are still listed; they fall back to a title-based id.
            hits.append(candidate)

        return hits

    def _parse_listing_row(self, row, mirror_base: str) -> Optional[RawHit]:
        """Parse one listing row; the detail URL is kept as the hit description."""
        name_elem = row.select_one('.name a:nth-of-type(2)')
        if not name_elem:
            return None
        detail_path = name_elem.get('href', '')
        if not detail_path:
            return None
        if detail_path.startswith("http://") or detail_path.startswith("https://"):
            detail_url = detail_path
        else:
            detail_url = mirror_base.rstrip("/") + detail_path

        def _text(selector):
            elem = row.select_one(selector)
            return elem.get_text(strip=True) if elem else None

        size_text = None
        size_elem = row.select_one('td.size')
        if size_elem:
            # "1.4 GB<span class="seeds">123</span>": keep the leading text node.
            size_text = next(iter(size_elem.strings), "").strip() or None

        return RawHit(
            title=name_elem.get_text(strip=True),
            time=_text('.coll-date'),
            seeds=_text('td.seeds'),
            peers=_text('td.leeches'),
            size=size_text,
            desc=detail_url,
            provider=self.name,
        )

    def _get_magnet_link(self, detail_url: str, timeout: float = 10.0) -> Optional[str]:
        try:
            response = self.session.get(detail_url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.debug("1337x detail fetch failed (%s): %s", detail_url, e)
            return None

        soup = BeautifulSoup(response.content, 'html.parser')
        magnet_elem = soup.select_one('a[href^="magnet:"]')
        if magnet_elem:
            return magnet_elem['href']
        return None
