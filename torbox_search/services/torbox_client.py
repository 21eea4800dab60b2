"""
TorBox Client
Authenticated calls to the TorBox API; every failure leaves as a TorBoxSearchError
"""
from typing import Dict, Optional
import logging

import requests

from ..core.errors import (
    InvalidCredentialError,
    RateLimitError,
    RequestTimeoutError,
    TorBoxRejectedError,
    TorBoxSearchError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


def translate_request_error(exc: Exception) -> TorBoxSearchError:
    """Map a requests failure onto the error taxonomy"""
    if isinstance(exc, TorBoxSearchError):
        return exc
    if isinstance(exc, requests.Timeout):
        return RequestTimeoutError(detail=str(exc))
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if status == 401:
        return InvalidCredentialError(detail=str(exc))
    if status == 429:
        return RateLimitError(detail=str(exc))
    return UpstreamUnavailableError(detail=str(exc))


class TorBoxClient:
    """TorBox API client; the bearer token is passed per call and never stored"""

    BASE_URL = "https://api.torbox.app/v1/api"
    ADD_TIMEOUT_SECONDS = 15.0
    STATUS_TIMEOUT_SECONDS = 5.0

    def __init__(self, settings=None):
        self.settings = settings

    def _base_url(self) -> str:
        if self.settings is None:
            return self.BASE_URL
        return str(self.settings.get("torbox_base_url", self.BASE_URL) or self.BASE_URL).rstrip("/")

    def _timeout(self) -> float:
        if self.settings is None:
            return self.ADD_TIMEOUT_SECONDS
        try:
            return float(self.settings.get("torbox_request_timeout_seconds", self.ADD_TIMEOUT_SECONDS) or self.ADD_TIMEOUT_SECONDS)
        except (TypeError, ValueError):
            return self.ADD_TIMEOUT_SECONDS

    def _api_request(self, method: str, endpoint: str, api_key: str, **kwargs) -> requests.Response:
        """
        Make an authenticated API request.
        Raises the mapped TorBoxSearchError for timeouts, transport errors and 4xx/5xx.
        """
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {api_key}"
        timeout = kwargs.pop("timeout", None) or self._timeout()

        url = f"{self._base_url()}/{endpoint}"
        try:
            response = requests.request(method, url, headers=headers, timeout=timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise translate_request_error(exc) from exc
        return response

    def add_magnet(self, magnet: str, api_key: str, timeout: Optional[float] = None) -> Dict:
        """
        Queue a magnet on TorBox.

        Only HTTP 200 counts as accepted; any other 2xx, or a JSON body
        reporting ``success: false``, raises TorBoxRejectedError.
        """
        response = self._api_request(
            "POST",
            "torrents/createtorrent",
            api_key,
            data={"magnet": magnet},
            timeout=timeout,
        )
        if response.status_code != 200:
            raise TorBoxRejectedError(detail=f"Unexpected status {response.status_code}")
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if isinstance(payload, dict) and payload.get("success") is False:
            raise TorBoxRejectedError(detail=str(payload.get("detail") or payload.get("error") or "rejected"))
        return payload if isinstance(payload, dict) else {}

    def get_user_info(self, api_key: str, timeout: Optional[float] = None) -> Dict:
        """Fetch the account behind a key; the cheapest authenticated call."""
        response = self._api_request(
            "GET",
            "user/me",
            api_key,
            timeout=timeout or self.STATUS_TIMEOUT_SECONDS,
        )
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
