"""Recent-torrents listing passthrough."""
from typing import Any
import logging

import requests

from ..core.errors import BrowseError

logger = logging.getLogger(__name__)


class BrowseClient:
    BROWSE_URL = "https://knaben.org/api/v1/"
    USER_AGENT = "TorBox-Search-App/1.0"
    TIMEOUT_SECONDS = 10.0

    def __init__(self, settings=None):
        self.settings = settings
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.USER_AGENT})

    def _url(self) -> str:
        if self.settings is None:
            return self.BROWSE_URL
        return str(self.settings.get("browse_url", self.BROWSE_URL) or self.BROWSE_URL)

    def fetch_recent(self) -> Any:
        """Return the listing's JSON exactly as received."""
        try:
            response = self.session.get(self._url(), timeout=self.TIMEOUT_SECONDS)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Browse error: %s", exc)
            raise BrowseError(detail=str(exc)) from exc
