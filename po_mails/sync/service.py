"""Fetch PO mail, extract fields and store the results; also builds the API payload."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from po_mails.mail.graph_client import MailClient, mail_client
from po_mails.processing.extractor import RecordProcessor
from po_mails.processing.types import Record

if TYPE_CHECKING:
    from po_mails.storage.db import RecordDatabase

logger = logging.getLogger(__name__)

#: Factory returning an async context manager that yields a connected MailClient.
ClientFactory = Callable[[], AbstractAsyncContextManager[MailClient]]


def build_payload(
    records: list[Record], generated_at: datetime | None = None
) -> dict[str, Any]:
    """Response body for the PO mail listing endpoint."""
    when = (generated_at or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return {
        "count": len(records),
        "generatedAt": when.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "items": [r.to_dict() for r in records],
    }


class SyncService:
    """Pulls the current PO window from the mailbox and upserts it.

    MailFetchError from the client propagates to the caller; it is the one
    failure the viewer is expected to surface.

    Usage::

        service = SyncService(db)
        records = await service.sync()
    """

    def __init__(
        self,
        db: RecordDatabase | None,
        client_factory: ClientFactory = mail_client,
    ) -> None:
        self._processor = RecordProcessor(db)
        self._client_factory = client_factory

    async def sync(self) -> list[Record]:
        """Fetch, extract and store. Returns records in fetch order (oldest first)."""
        async with self._client_factory() as client:
            messages = await client.fetch_messages()

        records = [self._processor.process(m) for m in messages]
        extracted = sum(1 for r in records if r.extracted.candidate_name)
        logger.info(
            "Synced %d record(s); %d with a candidate name",
            len(records),
            extracted,
        )
        return records
