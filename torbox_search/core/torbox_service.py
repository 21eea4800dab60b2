"""
TorBox proxy operations: single add, sequential batch add, credential status.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as SchemaError

from ..models.schemas import AddTorrentRequest, BatchAddTorrentsRequest
from .errors import (
    InvalidCredentialError,
    MissingCredentialError,
    TorBoxRejectedError,
    TorBoxSearchError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_PREVIEW_CHARS = 50


def _preview(magnet_url: str) -> str:
    return f"{str(magnet_url)[:ERROR_PREVIEW_CHARS]}..."


class TorBoxService:
    """
    Forwards magnets to TorBox with the caller's key, or the server default.

    Batches run one item at a time with a fixed pause between items. A batch
    cannot be cancelled once started and always attempts every item.
    """

    BATCH_ITEM_TIMEOUT_SECONDS = 10.0
    BATCH_DELAY_SECONDS = 1.0

    def __init__(
        self,
        client,
        settings=None,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settings = settings
        self.delay_seconds = self.BATCH_DELAY_SECONDS if delay_seconds is None else max(0.0, float(delay_seconds))
        self._sleep = sleep

    def resolve_api_key(self, api_key: Optional[str]) -> str:
        """Caller key first, then the server default; "" when neither exists."""
        key = str(api_key or "").strip()
        if key:
            return key
        if self.settings is None:
            return ""
        return self.settings.default_api_key

    def _require_api_key(self, api_key: Optional[str]) -> str:
        key = self.resolve_api_key(api_key)
        if not key:
            raise MissingCredentialError()
        return key

    def add_one(self, magnet_url: Any, api_key: Optional[str] = None) -> Dict[str, Any]:
        key = self._require_api_key(api_key)
        try:
            request = AddTorrentRequest.model_validate({"magnetUrl": magnet_url})
        except SchemaError as exc:
            raise ValidationError("Invalid magnet URL provided.", detail=str(exc)) from exc

        try:
            self.client.add_magnet(request.magnetUrl, key)
        except TorBoxSearchError as exc:
            logger.warning("TorBox add failed (%s): %s", type(exc).__name__, exc.detail or exc.message)
            raise
        logger.info("Added torrent to TorBox: %s", _preview(request.magnetUrl))
        return {"success": True, "message": "Torrent successfully added to TorBox"}

    def add_batch(self, magnet_urls: Any, api_key: Optional[str] = None) -> Dict[str, Any]:
        key = self._require_api_key(api_key)
        try:
            request = BatchAddTorrentsRequest.model_validate({"magnetUrls": magnet_urls})
        except SchemaError as exc:
            raise ValidationError("Invalid request parameters.", detail=str(exc)) from exc

        urls = request.magnetUrls
        success_count = 0
        failed_count = 0
        errors: List[str] = []

        for position, magnet_url in enumerate(urls):
            if position > 0 and self.delay_seconds > 0:
                self._sleep(self.delay_seconds)
            try:
                if not magnet_url:
                    raise ValidationError("Invalid magnet URL provided.")
                self.client.add_magnet(magnet_url, key, timeout=self.BATCH_ITEM_TIMEOUT_SECONDS)
                success_count += 1
            except TorBoxRejectedError:
                failed_count += 1
                errors.append(f"Failed to add torrent: {_preview(magnet_url)}")
            except Exception as exc:
                # One bad item never stops the batch.
                failed_count += 1
                errors.append(f"Error adding torrent: {_preview(magnet_url)}")
                logger.warning("Batch item %d failed (%s)", position + 1, type(exc).__name__)

        total = len(urls)
        logger.info("Batch add finished: %d of %d added", success_count, total)
        return {
            "success": success_count > 0,
            "successCount": success_count,
            "failedCount": failed_count,
            "totalCount": total,
            "message": f"Successfully added {success_count} of {total} torrents to TorBox",
            "errors": errors,
        }

    def check_status(self, api_key: Optional[str] = None) -> Dict[str, Any]:
        """Report whether a key works; never raises."""
        key = self.resolve_api_key(api_key)
        if not key:
            return {"connected": False, "message": "API key not configured"}
        try:
            self.client.get_user_info(key)
        except InvalidCredentialError:
            return {"connected": False, "message": "Invalid API key"}
        except Exception as exc:
            logger.warning("TorBox status check failed: %s", exc)
            return {"connected": False, "message": "Unable to verify API key"}
        return {"connected": True, "message": "API key is valid"}
