"""FastAPI app exposing search and the TorBox proxy to the browser UI."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import TorBoxSearchError, ValidationError
from .runtime import TorBoxSearchRuntime, build_runtime


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _field(body: Any, name: str) -> Any:
    return body.get(name) if isinstance(body, dict) else None


def create_app(runtime: Optional[TorBoxSearchRuntime] = None) -> FastAPI:
    runtime = runtime or build_runtime()

    app = FastAPI(title="TorBox Search API", version="1.0.0")

    @app.exception_handler(TorBoxSearchError)
    async def torbox_search_error_handler(request: Request, exc: TorBoxSearchError) -> JSONResponse:
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Unparseable JSON bodies; field detail stays server-side.
        error = ValidationError()
        return JSONResponse(error.to_payload(), status_code=error.status_code)

    @app.get("/health")
    def health() -> Dict:
        return {
            "ok": True,
            "time": _utc_now_iso(),
            "sources": runtime.source_manager.healthcheck(),
        }

    @app.post("/api/search")
    def search(body: Any = Body(None)) -> Dict:
        return runtime.search_service.search(body).to_dict()

    @app.get("/api/browse")
    def browse() -> Any:
        return runtime.browse_client.fetch_recent()

    @app.post("/api/torbox/add")
    def torbox_add(body: Any = Body(None)) -> Dict:
        return runtime.torbox_service.add_one(_field(body, "magnetUrl"), api_key=_field(body, "apiKey"))

    @app.post("/api/torbox/batch-add")
    def torbox_batch_add(body: Any = Body(None)) -> Dict:
        return runtime.torbox_service.add_batch(_field(body, "magnetUrls"), api_key=_field(body, "apiKey"))

    @app.get("/api/torbox/status")
    def torbox_status(x_api_key: Optional[str] = Header(None)) -> Dict:
        return runtime.torbox_service.check_status(x_api_key)

    return app


app = create_app()
