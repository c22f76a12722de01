"""Month / candidate / company views over a set of Records.

Everything here is a pure function of its inputs: the caller re-invokes it
whenever the record set or the search text changes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from po_mails.processing.types import Record
from po_mails.views.dates import month_label, month_sort_key, timestamp

UNTITLED = "Untitled"
UNKNOWN_COMPANY = "Unknown Company"

#: Extracted fields included in the free-text search haystack.
SEARCH_FIELDS: tuple[str, ...] = (
    "candidate_name",
    "email",
    "location",
    "job_location",
    "end_client",
    "rate",
)


@dataclass(frozen=True)
class CandidateGroup:
    """Records sharing one candidate key inside a month bucket."""

    key: str
    display_name: str
    records: tuple[Record, ...]

    @property
    def latest_per_company(self) -> list[Record]:
        return latest_per_company(self.records)

    def to_dict(self) -> dict[str, Any]:
        deduped = self.latest_per_company
        return {
            "key": self.key,
            "displayName": self.display_name,
            "count": len(self.records),
            "items": [r.to_dict() for r in self.records],
            "deduped": [r.to_dict() for r in deduped],
        }


@dataclass(frozen=True)
class MonthBucket:
    label: str
    sort_key: str
    groups: tuple[CandidateGroup, ...]

    @property
    def count(self) -> int:
        return sum(len(g.records) for g in self.groups)

    def to_dict(self, is_open: bool = True) -> dict[str, Any]:
        return {
            "monthLabel": self.label,
            "sortKey": self.sort_key,
            "count": self.count,
            "open": is_open,
            "groups": [g.to_dict() for g in self.groups] if is_open else [],
        }


# ── Keys ───────────────────────────────────────────────────────────────────────


def candidate_key(record: Record) -> str:
    return record.extracted.candidate_name or record.subject or UNTITLED


def company_key(record: Record) -> str:
    return record.extracted.end_client or record.extracted.job_location or UNKNOWN_COMPANY


# ── Filter ─────────────────────────────────────────────────────────────────────


def _haystack(record: Record) -> str:
    parts = [
        record.subject,
        record.sender.name if record.sender else "",
        record.sender.address if record.sender else "",
        record.received_at,
    ]
    parts.extend(getattr(record.extracted, name) or "" for name in SEARCH_FIELDS)
    return " ".join(p for p in parts if p).lower()


def matches_query(record: Record, query: str | None) -> bool:
    """Case-insensitive substring match against the record's searchable text."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return needle in _haystack(record)


def filter_records(records: Iterable[Record], query: str | None) -> list[Record]:
    return [r for r in records if matches_query(r, query)]


# ── Grouping ───────────────────────────────────────────────────────────────────


def group_by_candidate(records: Iterable[Record]) -> list[CandidateGroup]:
    """Partition records by candidate key, groups in first-seen order."""
    buckets: dict[str, list[Record]] = {}
    for record in records:
        buckets.setdefault(candidate_key(record), []).append(record)
    return [
        CandidateGroup(key=key, display_name=key, records=tuple(items))
        for key, items in buckets.items()
    ]


def month_buckets(records: Iterable[Record]) -> list[MonthBucket]:
    """Bucket records by calendar month of receipt, most recent month first.

    Unparseable or missing timestamps land in "Unknown Month" with sort key
    "0000-00", which orders after every real month.
    """
    buckets: dict[str, tuple[str, list[Record]]] = {}
    for record in records:
        label = month_label(record.received_at)
        if label not in buckets:
            buckets[label] = (month_sort_key(record.received_at), [])
        buckets[label][1].append(record)

    ordered = sorted(buckets.items(), key=lambda item: item[1][0], reverse=True)
    return [
        MonthBucket(label=label, sort_key=sort_key, groups=tuple(group_by_candidate(items)))
        for label, (sort_key, items) in ordered
    ]


def group_records(records: Iterable[Record], query: str | None = "") -> list[MonthBucket]:
    """Filter by free text, then bucket by month and group by candidate."""
    return month_buckets(filter_records(records, query))


def find_group(
    buckets: Iterable[MonthBucket], key: str, month: str | None = None
) -> CandidateGroup | None:
    """Look up a candidate group by key (case-insensitive), optionally in one month."""
    wanted = key.strip().lower()
    for bucket in buckets:
        if month is not None and bucket.label.lower() != month.strip().lower():
            continue
        for group in bucket.groups:
            if group.key.lower() == wanted:
                return group
    return None


# ── Company dedup ──────────────────────────────────────────────────────────────


def latest_per_company(records: Iterable[Record]) -> list[Record]:
    """Keep the most recent record per company, newest first.

    Among records with equal timestamps the later-encountered one wins.
    Missing or malformed timestamps compare as the epoch.
    """
    latest: dict[str, Record] = {}
    for record in records:
        company = company_key(record)
        existing = latest.get(company)
        if existing is None or timestamp(record.received_at) >= timestamp(existing.received_at):
            latest[company] = record
    return sorted(latest.values(), key=lambda r: timestamp(r.received_at), reverse=True)
