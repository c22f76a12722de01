"""SQLite persistence for extracted PO records."""

import json
import logging
import sqlite3
from pathlib import Path

from po_mails.mail.types import Sender
from po_mails.processing.types import ExtractedFields, Record
from po_mails.storage.models import ALL_TABLES, RecordRow

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = Path("data/po_mails.db")

_SELECT_COLUMNS = (
    "id, subject, sender_name, sender_address, received_at, "
    "body_preview, web_link, extracted, stored_at"
)


class RecordDatabase:
    """Wraps SQLite for upsert-by-id storage of Records.

    One instance is created by the entry point and handed to whatever needs
    it; nothing below the entry point opens its own connection.

    Usage::

        db = RecordDatabase()
        db.upsert(record)
        records = db.get_all_records()
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def close(self) -> None:
        """Close the underlying database connection."""
        self._conn.close()

    # ── Write API ───────────────────────────────────────────────────────────────

    def upsert(self, record: Record) -> None:
        """Insert the record, or replace every column of an existing row."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO po_records
                    (id, subject, sender_name, sender_address, received_at,
                     body_preview, web_link, extracted)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    subject        = excluded.subject,
                    sender_name    = excluded.sender_name,
                    sender_address = excluded.sender_address,
                    received_at    = excluded.received_at,
                    body_preview   = excluded.body_preview,
                    web_link       = excluded.web_link,
                    extracted      = excluded.extracted,
                    stored_at      = datetime('now')
                """,
                (
                    record.id,
                    record.subject,
                    record.sender.name if record.sender else None,
                    record.sender.address if record.sender else None,
                    record.received_at,
                    record.body_preview,
                    record.web_link,
                    json.dumps(record.extracted.to_dict()),
                ),
            )
        logger.debug("Stored record %s", record.id)

    def upsert_many(self, records: list[Record]) -> int:
        for record in records:
            self.upsert(record)
        return len(records)

    # ── Read API ────────────────────────────────────────────────────────────────

    def get_record(self, record_id: str) -> Record | None:
        """Return the stored record for record_id, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM po_records WHERE id = ?",
            (record_id,),
        ).fetchone()
        return _row_to_record(RecordRow(**dict(row))) if row else None

    def get_all_records(self) -> list[Record]:
        """Return every stored record, oldest received first."""
        rows = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM po_records ORDER BY received_at, id"
        ).fetchall()
        return [_row_to_record(RecordRow(**dict(r))) for r in rows]

    def count(self) -> int:
        return int(self._conn.execute("SELECT COUNT(*) FROM po_records").fetchone()[0])

    # ── Private ─────────────────────────────────────────────────────────────────

    def _create_tables(self) -> None:
        with self._conn:
            for ddl in ALL_TABLES:
                self._conn.execute(ddl)


def _row_to_record(row: RecordRow) -> Record:
    sender = None
    if row.sender_name is not None or row.sender_address is not None:
        sender = Sender(name=row.sender_name or "", address=row.sender_address or "")
    try:
        extracted = ExtractedFields.from_dict(json.loads(row.extracted))
    except json.JSONDecodeError:
        logger.warning("Corrupt extracted payload for record %s; treating as empty", row.id)
        extracted = ExtractedFields()
    return Record(
        id=row.id,
        subject=row.subject,
        sender=sender,
        received_at=row.received_at,
        body_preview=row.body_preview,
        web_link=row.web_link,
        extracted=extracted,
    )
