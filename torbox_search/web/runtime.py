"""Runtime bootstrap for the TorBox Search web API."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from ..core.search_service import SearchService
from ..core.settings import Settings
from ..core.source_manager import SourceManager
from ..core.torbox_service import TorBoxService
from ..services.browse_client import BrowseClient
from ..services.torbox_client import TorBoxClient
from ..sources import BUILTIN_SOURCES

logger = logging.getLogger(__name__)


@dataclass
class TorBoxSearchRuntime:
    """Shared service graph used by web endpoints."""

    settings: Settings
    source_manager: SourceManager
    search_service: SearchService
    torbox_service: TorBoxService
    browse_client: BrowseClient


def configure_logging(settings: Settings) -> None:
    level = str(settings.get("log_level", "INFO") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_source_manager(settings: Settings) -> SourceManager:
    source_manager = SourceManager(
        search_timeout_seconds=float(settings.get("search_timeout_seconds", 20.0) or 20.0),
    )
    enabled = [str(name) for name in (settings.get("enabled_sources", []) or [])]
    for source_name in enabled:
        source_cls = BUILTIN_SOURCES.get(source_name)
        if source_cls is None:
            logger.warning("Unknown search source in settings: %s", source_name)
            continue
        source_manager.register(source_cls(settings))
    return source_manager


def build_runtime(settings: Optional[Settings] = None) -> TorBoxSearchRuntime:
    """Create and wire services from settings (environment by default)."""

    settings = settings or Settings()
    configure_logging(settings)
    if not settings.default_api_key:
        logger.warning("TORBOX_API_KEY not found in environment variables")

    source_manager = build_source_manager(settings)
    return TorBoxSearchRuntime(
        settings=settings,
        source_manager=source_manager,
        search_service=SearchService(source_manager),
        torbox_service=TorBoxService(TorBoxClient(settings), settings=settings),
        browse_client=BrowseClient(settings),
    )
