"""SQLite table schema and row type for the record store."""

from dataclasses import dataclass


# ── DDL ────────────────────────────────────────────────────────────────────────

_CREATE_RECORDS = """
CREATE TABLE IF NOT EXISTS po_records (
    id              TEXT PRIMARY KEY,
    subject         TEXT NOT NULL DEFAULT '',
    sender_name     TEXT,
    sender_address  TEXT,
    received_at     TEXT NOT NULL DEFAULT '',
    body_preview    TEXT NOT NULL DEFAULT '',
    web_link        TEXT NOT NULL DEFAULT '',
    extracted       TEXT NOT NULL DEFAULT '{}',
    stored_at       TEXT NOT NULL DEFAULT (datetime('now'))
)
"""

_CREATE_RECEIVED_INDEX = """
CREATE INDEX IF NOT EXISTS idx_po_records_received ON po_records(received_at)
"""

#: All DDL statements in creation order.
ALL_TABLES: list[str] = [
    _CREATE_RECORDS,
    _CREATE_RECEIVED_INDEX,
]


@dataclass(frozen=True)
class RecordRow:
    """A full row from the po_records table."""

    id: str
    subject: str
    sender_name: str | None
    sender_address: str | None
    received_at: str
    body_preview: str
    web_link: str
    extracted: str  # JSON-encoded ExtractedFields.to_dict()
    stored_at: str
