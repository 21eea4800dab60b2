"""
Settings
Application settings: built-in defaults overridden by the process environment.
Nothing is persisted; a fresh Settings reads the environment once.
"""
import os
import threading
from typing import Any, Dict, Mapping, Optional


def _parse_list(raw: str) -> list:
    return [piece.strip() for piece in (raw or "").split(",") if piece.strip()]


def _parse_float(raw: str) -> float:
    return float(raw)


class Settings:
    """Key-value settings with environment overrides"""

    DEFAULT_SETTINGS = {
        # TorBox
        "torbox_api_key": "",
        "torbox_base_url": "https://api.torbox.app/v1/api",
        "torbox_request_timeout_seconds": 15.0,

        # Browse
        "browse_url": "https://knaben.org/api/v1/",

        # Sources
        "enabled_sources": ["PirateBay", "1337x"],
        "search_timeout_seconds": 20.0,
        # Extra endpoints/mirrors tried before each provider's built-in list.
        "piratebay_api_endpoints": [],
        "piratebay_mirror_order": [],
        "piratebay_request_timeout_seconds": 12.0,
        "x1337_mirror_order": [],
        "x1337_detail_timeout_seconds": 6.0,
        "x1337_detail_budget_seconds": 15.0,
        "x1337_max_detail_fetches": 20,

        # Logging
        "log_level": "INFO",
    }

    # setting key -> (environment variable names in priority order, parser)
    ENV_OVERRIDES = {
        "torbox_api_key": (("TORBOX_API_KEY", "TORBOX_API_KEY_ENV_VAR"), str),
        "torbox_base_url": (("TORBOX_BASE_URL",), str),
        "torbox_request_timeout_seconds": (("TORBOX_REQUEST_TIMEOUT_SECONDS",), _parse_float),
        "browse_url": (("TORBOX_SEARCH_BROWSE_URL",), str),
        "enabled_sources": (("TORBOX_SEARCH_SOURCES",), _parse_list),
        "search_timeout_seconds": (("TORBOX_SEARCH_TIMEOUT_SECONDS",), _parse_float),
        "piratebay_api_endpoints": (("TORBOX_SEARCH_PIRATEBAY_API",), _parse_list),
        "piratebay_mirror_order": (("TORBOX_SEARCH_PIRATEBAY_MIRRORS",), _parse_list),
        "x1337_mirror_order": (("TORBOX_SEARCH_X1337_MIRRORS",), _parse_list),
        "log_level": (("TORBOX_SEARCH_LOG_LEVEL",), str),
    }

    def __init__(self, environ: Optional[Mapping[str, str]] = None, overrides: Optional[Dict[str, Any]] = None):
        self._lock = threading.RLock()
        self._settings: Dict[str, Any] = {}
        self._load(os.environ if environ is None else environ)
        if overrides:
            self.update(overrides)

    def _load(self, environ: Mapping[str, str]):
        """Merge defaults with environment values"""
        with self._lock:
            self._settings = {
                key: list(value) if isinstance(value, list) else value
                for key, value in self.DEFAULT_SETTINGS.items()
            }
            for key, (names, parser) in self.ENV_OVERRIDES.items():
                for name in names:
                    raw = str(environ.get(name, "") or "").strip()
                    if not raw:
                        continue
                    try:
                        self._settings[key] = parser(raw)
                    except ValueError:
                        raise ValueError(f"Invalid value for {name}: {raw!r}") from None
                    break

    def get(self, key: str, default=None) -> Any:
        """Get a setting value"""
        with self._lock:
            return self._settings.get(key, default)

    def update(self, values: Dict[str, Any]):
        """Update multiple settings at once"""
        with self._lock:
            self._settings.update(values)

    @property
    def default_api_key(self) -> str:
        return str(self.get("torbox_api_key", "") or "").strip()
