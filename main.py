"""
Main API module for Shortlink Platform.

Responsibilities:
    - Expose REST endpoints for shortening, listing, inspecting and deleting links
    - Redirect short codes to their targets and count clicks
    - Serve QR codes for short URLs

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Storage chosen by the storage factory unless a registry is injected.
    - CodeRegistry owns every rule; routes only translate between HTTP and
      registry calls, mapping the error taxonomy to status codes:
      InvalidInputError -> 400, LinkNotFoundError -> 404,
      CodeConflictError -> 409, StorageError -> 503.
    - Click recording on redirect runs as a FastAPI background task after the
      302 is sent; counts are eventually consistent with redirects.

LLM Prompt Example:
    "Explain how to structure a FastAPI service with an application factory,
    injected dependencies, and a clean separation between API and business logic."
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from shortlink_platform.config import settings
from shortlink_platform.manager.code_registry import CodeRegistry
from shortlink_platform.model.errors import (
    CodeConflictError,
    InvalidInputError,
    ShortLinkError,
    StorageError,
)
from shortlink_platform.model.link import ShortLink
from shortlink_platform.qr import build_short_url, generate_qr_png
from shortlink_platform.storage.storage_factory import get_storage


class ShortenRequest(BaseModel):
    """Request payload for creating a new short link."""
    url: str
    custom_code: Optional[str] = None


def create_app(registry: Optional[CodeRegistry] = None, base_url: Optional[str] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        registry (Optional[CodeRegistry]): Injected registry; when omitted one is
            built over `get_storage()` with its schema initialised.
        base_url (Optional[str]): Prefix for rendered short URLs (settings.BASE_URL).

    Returns:
        FastAPI: A fully configured application instance.
    """
    log = logging.getLogger("shortlink")

    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    # Storage built here is owned by the app and closed on shutdown;
    # an injected registry's storage belongs to the caller.
    owned_storage = None
    if registry is None:
        owned_storage = get_storage()
        owned_storage.init_schema()
        registry = CodeRegistry(storage=owned_storage)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owned_storage is not None:
            owned_storage.close()

    app = FastAPI(
        title="Shortlink Platform",
        description="Self-hosted URL shortener with click counting",
        docs_url="/docs",
        lifespan=lifespan,
    )

    prefix = (base_url or settings.BASE_URL).rstrip("/")
    log.info("Shortlink storage backend: %s", type(registry.storage).__name__)

    # ----------------------------------------------------------------
    # Utilities
    # ----------------------------------------------------------------
    def _serialize(link: ShortLink) -> Dict[str, Any]:
        return {
            "id": link.id,
            "short_code": link.code,
            "long_url": link.target,
            "short_url": build_short_url(prefix, link.code),
            "created_at": link.created_at.isoformat(),
            "clicks": link.clicks,
        }

    def _storage_failure(exc: StorageError) -> HTTPException:
        log.error("Storage failure: %s", exc)
        return HTTPException(status_code=503, detail="Storage unavailable")

    def _record_click_in_background(code: str) -> None:
        # Runs after the redirect response; failures are logged, not raised.
        try:
            registry.record_click(code)
        except ShortLinkError as exc:
            log.warning("Click for %s not recorded: %s", code, exc)

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/shorten")
    def api_shorten(req: ShortenRequest) -> Dict[str, Any]:
        """
        Create a short link.

        Raises:
            HTTPException: 400 on empty URL or reserved custom code,
                409 on custom code conflict,
                503 when storage is unavailable.
        """
        try:
            link = registry.shorten(req.url, req.custom_code)
        except InvalidInputError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except CodeConflictError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except StorageError as exc:
            raise _storage_failure(exc)
        return _serialize(link)

    @app.get("/api/urls")
    def api_list_urls() -> Dict[str, Any]:
        try:
            links = registry.list_links()
        except StorageError as exc:
            raise _storage_failure(exc)
        return {"urls": [_serialize(link) for link in links]}

    @app.get("/api/url/{code:path}")
    def api_get_url(code: str) -> Dict[str, Any]:
        try:
            link = registry.resolve(code)
        except StorageError as exc:
            raise _storage_failure(exc)
        if link is None:
            raise HTTPException(status_code=404, detail="URL not found")
        return _serialize(link)

    @app.delete("/api/url/{code:path}")
    def api_delete_url(code: str) -> Dict[str, str]:
        try:
            registry.delete(code)
        except StorageError as exc:
            raise _storage_failure(exc)
        return {"message": "URL deleted successfully"}

    @app.get("/qr/{code:path}")
    def qr_code(code: str) -> Response:
        try:
            link = registry.resolve(code)
        except StorageError as exc:
            raise _storage_failure(exc)
        if link is None:
            raise HTTPException(status_code=404, detail="URL not found")
        png = generate_qr_png(build_short_url(prefix, link.code))
        return Response(content=png, media_type="image/png")

    # Registered last so it never shadows the fixed routes above. `path` lets
    # custom codes contain slashes; their first segment is never a fixed route
    # (RESERVED_PREFIXES).
    @app.get("/{code:path}")
    def redirect(code: str, background_tasks: BackgroundTasks) -> Response:
        """
        Redirect a short code to its target and count the click.

        The click is recorded by a background task after the 302 is sent,
        so the redirect never waits on the increment.
        """
        try:
            link = registry.resolve(code)
        except StorageError as exc:
            raise _storage_failure(exc)
        if link is None:
            raise HTTPException(status_code=404, detail="URL not found")
        background_tasks.add_task(_record_click_in_background, code)
        return RedirectResponse(url=link.target, status_code=302)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8080)
else:
    # `uvicorn main:app` and `from main import app` keep working.
    app = create_app()
