"""RecordQuery — read-side views over the record store for the CLI and API."""

from typing import Any

from po_mails.processing.types import Record
from po_mails.storage.db import RecordDatabase
from po_mails.views.grouping import (
    CandidateGroup,
    MonthBucket,
    filter_records,
    find_group,
    group_records,
)
from po_mails.views.support import support_view


class RecordQuery:
    """Applies the free-text filter and the month/support views to stored records.

    Every call reads the current record set, so repeated calls on an
    unchanged store return identical results.

    Usage::

        query = RecordQuery(db)
        months = query.months("acme")
        stats = query.support(year="2024", month="03")
    """

    def __init__(self, db: RecordDatabase) -> None:
        self.db = db

    def close(self) -> None:
        """Release the underlying store."""
        self.db.close()

    def records(self, text: str | None = "") -> list[Record]:
        return filter_records(self.db.get_all_records(), text)

    def months(self, text: str | None = "") -> list[MonthBucket]:
        return group_records(self.db.get_all_records(), text)

    def candidate(
        self, name: str, month: str | None = None, text: str | None = ""
    ) -> CandidateGroup | None:
        return find_group(self.months(text), name, month)

    def support(
        self,
        text: str | None = "",
        year: str | None = None,
        month: str | None = None,
    ) -> dict[str, Any]:
        return support_view(self.records(text), year=year, month=month)

    def views(
        self,
        text: str | None = "",
        year: str | None = None,
        month: str | None = None,
        open_months: set[str] | None = None,
    ) -> dict[str, Any]:
        """Month buckets and support stats in one JSON-ready payload.

        ``open_months`` names the buckets whose groups should be expanded;
        None expands all of them.
        """
        filtered = self.records(text)
        buckets = group_records(filtered)
        return {
            "count": len(filtered),
            "months": [
                b.to_dict(is_open=open_months is None or b.label in open_months)
                for b in buckets
            ],
            "support": support_view(filtered, year=year, month=month),
        }
