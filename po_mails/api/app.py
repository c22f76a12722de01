"""FastAPI application serving PO records and their views."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from po_mails.cli.query import RecordQuery
from po_mails.mail.graph_client import MailFetchError
from po_mails.sync.scheduler import create_sync_scheduler
from po_mails.sync.service import SyncService, build_payload

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str, detail: Any) -> JSONResponse:
    """JSON error payload with a consistent shape: {"error": ..., "detail": ...}."""
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


def _parse_open(raw: str | None) -> set[str] | None:
    """Comma-separated month labels; None means every month is open."""
    if raw is None:
        return None
    return {item.strip() for item in raw.split(",") if item.strip()}


def create_app(
    service: SyncService,
    query: RecordQuery,
    static_dir: str | Path | None = None,
    sync_interval: int = 0,
) -> FastAPI:
    """Build the app around handles owned by the caller.

    ``sync_interval`` > 0 starts a background sync scheduler for the lifetime
    of the app.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        scheduler = None
        if sync_interval > 0:
            scheduler = create_sync_scheduler(service, sync_interval)
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)

    app = FastAPI(title="PO Mail Viewer", lifespan=lifespan)
    app.state.service = service
    app.state.query = query

    @app.get("/api/po-mails")
    async def list_po_mails(request: Request) -> Any:
        """Fetch the current PO window live, store it and return it."""
        try:
            records = await request.app.state.service.sync()
        except (MailFetchError, ValueError) as exc:
            logger.error("PO mail fetch failed: %s", exc)
            detail = getattr(exc, "detail", None)
            return _error_response(500, "Failed to fetch emails", detail or str(exc))
        return build_payload(records)

    @app.get("/api/po-mails/views")
    def po_mail_views(
        request: Request,
        q: str = "",
        year: str | None = None,
        month: str | None = None,
        open: str | None = None,  # noqa: A002
    ) -> dict[str, Any]:
        """Month buckets, candidate groups and support stats over stored records."""
        return request.app.state.query.views(
            q, year=year, month=month, open_months=_parse_open(open)
        )

    if static_dir is not None and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
        logger.info("Serving static files from %s", static_dir)

    return app
