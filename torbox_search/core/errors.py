"""
Error taxonomy
Every failure that can reach an HTTP response is one of these.
"""
from typing import Any, Dict, Optional


class TorBoxSearchError(Exception):
    """Base error with the HTTP status and client-facing message it maps to"""

    status_code = 500
    default_message = "Unexpected server error."

    def __init__(self, message: Optional[str] = None, detail: str = ""):
        self.message = message or self.default_message
        # Internal detail for logs; never sent to the client.
        self.detail = detail
        super().__init__(detail or self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(TorBoxSearchError):
    status_code = 400
    default_message = "Invalid request parameters."


class MissingCredentialError(TorBoxSearchError):
    status_code = 400
    default_message = "TorBox API key is required. Please configure it in settings."


class TorBoxRejectedError(TorBoxSearchError):
    status_code = 400
    default_message = "Failed to add torrent to TorBox"


class InvalidCredentialError(TorBoxSearchError):
    status_code = 401
    default_message = "Invalid TorBox API key. Please check configuration."


class RequestTimeoutError(TorBoxSearchError):
    status_code = 408
    default_message = "Request to TorBox timed out. Please try again."


class RateLimitError(TorBoxSearchError):
    status_code = 429
    default_message = "TorBox rate limit exceeded. Please try again later."


class UpstreamUnavailableError(TorBoxSearchError):
    status_code = 500
    default_message = "TorBox service temporarily unavailable. Please try again later."


class UpstreamError(TorBoxSearchError):
    """Search providers failed or timed out."""

    status_code = 500
    default_message = "Search services temporarily unavailable. Please try again later."
    error_summary = "All search providers failed"

    def to_payload(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error_summary}


class BrowseError(TorBoxSearchError):
    status_code = 500
    default_message = "Failed to fetch recent torrents. Please try again later."


class SourceError(Exception):
    """Raised by the source manager when no provider produced an answer."""


class ProviderUnavailableError(SourceError):
    """Raised by one provider when none of its endpoints answered."""
