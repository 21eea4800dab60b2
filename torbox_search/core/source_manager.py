"""
Source Manager
Queries every enabled provider for one search and merges their raw hits
"""
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Tuple
import logging
import threading
import time

from ..models.torrent_record import RawHit
from ..sources.base import BaseSource
from .errors import ProviderUnavailableError, SourceError
from .normalizer import extract_infohash

logger = logging.getLogger(__name__)


class SourceManager:
    """
    Default aggregation implementation.

    Each call fans out to the registered providers on a thread pool that
    lives only for that call; providers still running at the deadline are
    dropped. A call's outcome depends only on what its own providers
    returned. The health snapshot is written after each call for /health
    and is never read back to decide a result. Nothing is cached.
    """

    def __init__(self, search_timeout_seconds: float = 20.0):
        self._sources: Dict[str, BaseSource] = {}
        self._lock = threading.RLock()
        self._search_timeout_seconds = max(1.0, float(search_timeout_seconds))
        self._status_lock = threading.Lock()
        self._source_errors: Dict[str, str] = {}
        self._last_warnings: Dict[str, str] = {}

    def register(self, source):
        """Register a search source"""
        if not isinstance(source, BaseSource):
            raise TypeError(f"Invalid source type for register(): {type(source)}. Expected BaseSource.")
        if not getattr(source, "name", ""):
            raise ValueError("Source must define non-empty 'name'.")
        with self._lock:
            self._sources[source.name] = source

    def get_source_names(self) -> List[str]:
        with self._lock:
            return list(self._sources.keys())

    @property
    def last_warnings(self) -> Dict[str, str]:
        """Warnings from the most recently finished search (diagnostics only)."""
        with self._status_lock:
            return dict(self._last_warnings)

    def healthcheck(self) -> List[Dict]:
        with self._status_lock:
            errors = dict(self._source_errors)
        return [
            {"name": name, "ok": not errors.get(name), "error": errors.get(name, "")}
            for name in self.get_source_names()
        ]

    def search(self, text: str, category: str = "All", limit: int = 50) -> List[RawHit]:
        """
        Search all registered providers.

        Returns hits in provider registration order with duplicate magnets
        removed, trimmed to ``limit``. Raises SourceError when no provider
        produced an answer (all failed or timed out).
        """
        with self._lock:
            sources = list(self._sources.items())
        if not sources:
            raise SourceError("No search providers are enabled.")

        answers: Dict[str, List[RawHit]] = {}
        warnings: Dict[str, str] = {}
        executor = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="source-search")
        try:
            futures = {
                executor.submit(self._safe_search, source, text, category, limit): name
                for name, source in sources
            }
            deadline = time.monotonic() + self._search_timeout_seconds
            pending = set(futures)
            while pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for future in done:
                    name = futures[future]
                    hits, warning = future.result()
                    if hits is not None:
                        answers[name] = hits
                    if warning:
                        warnings[name] = warning

            for future in pending:
                future.cancel()
                name = futures[future]
                warnings[name] = f"{name} timed out after {int(self._search_timeout_seconds)}s."
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        self._record_status([name for name, _ in sources], answers, warnings)
        for name, warning in warnings.items():
            logger.warning("Source %s: %s", name, warning)

        if not answers:
            raise SourceError("; ".join(f"{name}: {msg}" for name, msg in warnings.items()) or "No provider answered.")

        merged: List[RawHit] = []
        for name, _ in sources:
            merged.extend(answers.get(name, []))
        return self._deduplicate(merged)[:max(0, int(limit))]

    def _safe_search(self, source: BaseSource, text: str, category: str, limit: int) -> Tuple[Optional[List[RawHit]], str]:
        """
        Run one provider.
        Returns (hits, warning); hits is None when the provider failed.
        """
        start = time.perf_counter()
        try:
            hits = list(source.search(text, category, limit) or [])
        except ProviderUnavailableError as e:
            # Logged with the other per-call warnings.
            return None, str(e)
        except Exception as e:
            logger.exception("Source search error in %s", source.name)
            return None, str(e)
        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("Source %s returned %d hits in %.0fms", source.name, len(hits), latency_ms)
        return hits, ""

    def _record_status(self, names: List[str], answers: Dict[str, List[RawHit]], warnings: Dict[str, str]) -> None:
        with self._status_lock:
            self._last_warnings = dict(warnings)
            for name in names:
                self._source_errors[name] = "" if name in answers else warnings.get(name, "")

    @staticmethod
    def _deduplicate(hits: List[RawHit]) -> List[RawHit]:
        """Drop repeat torrents, keyed by info-hash (or the magnet itself when it has none)."""
        seen = set()
        unique = []
        for hit in hits:
            magnet = (getattr(hit, "magnet", None) or "").strip()
            if magnet:
                key = extract_infohash(magnet).lower() or magnet
                if key in seen:
                    continue
                seen.add(key)
            unique.append(hit)
        return unique
