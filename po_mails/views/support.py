"""Interview-support statistics over a filtered Record set."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from po_mails.processing.types import Record
from po_mails.views.dates import parse_received, year_month

ALL = "All"
UNKNOWN = "Unknown"


@dataclass(frozen=True)
class SupportStatRow:
    """Count of records and distinct candidates for one support person."""

    name: str
    count: int
    candidates: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "count": self.count, "candidates": list(self.candidates)}


@dataclass(frozen=True)
class Period:
    year: str = ALL
    month: str = ALL


@dataclass(frozen=True)
class SupportFilterOptions:
    years: tuple[str, ...]   # newest first
    months: tuple[str, ...]  # "01" … "12"


def in_period(record: Record, year: str = ALL, month: str = ALL) -> bool:
    """True when the record falls in the year/month filter.

    Records whose timestamp cannot be parsed have nothing to filter on and
    are always included.
    """
    parts = year_month(record.received_at)
    if parts is None:
        return True
    record_year, record_month = parts
    if year != ALL and record_year != year:
        return False
    if month != ALL and record_month != month:
        return False
    return True


def support_stats(
    records: Iterable[Record], year: str = ALL, month: str = ALL
) -> list[SupportStatRow]:
    """Rows per interview-support person, busiest first.

    Ties keep first-encountered order.
    """
    counts: dict[str, int] = {}
    candidates: dict[str, dict[str, None]] = {}
    for record in records:
        if not in_period(record, year, month):
            continue
        expert = record.extracted.interview_support_by or UNKNOWN
        candidate = record.extracted.candidate_name or UNKNOWN
        counts[expert] = counts.get(expert, 0) + 1
        candidates.setdefault(expert, {})[candidate] = None

    rows = [
        SupportStatRow(name=name, count=count, candidates=tuple(candidates[name]))
        for name, count in counts.items()
    ]
    return sorted(rows, key=lambda row: row.count, reverse=True)


def filter_options(records: Iterable[Record]) -> SupportFilterOptions:
    """Distinct years and months present among parseable timestamps."""
    years: set[str] = set()
    months: set[str] = set()
    for record in records:
        parts = year_month(record.received_at)
        if parts is None:
            continue
        years.add(parts[0])
        months.add(parts[1])
    return SupportFilterOptions(
        years=tuple(sorted(years, reverse=True)),
        months=tuple(sorted(months)),
    )


def latest_period(records: Iterable[Record]) -> Period:
    """Year/month of the newest parseable timestamp, or All/All if none."""
    latest = None
    for record in records:
        parsed = parse_received(record.received_at)
        if parsed is not None and (latest is None or parsed > latest):
            latest = parsed
    if latest is None:
        return Period()
    return Period(year=f"{latest.year:04d}", month=f"{latest.month:02d}")


# ── Filter state ───────────────────────────────────────────────────────────────


@dataclass
class SupportFilterState:
    """Year/month selection with a one-time default taken from the data.

    Until a value has been chosen explicitly, ``seed()`` moves it from "All"
    to the latest period.  After ``select()`` the choice is kept, even when it
    is "All".
    """

    year: str = ALL
    month: str = ALL
    _chosen: set[str] = field(default_factory=set, repr=False)

    def select(self, year: str | None = None, month: str | None = None) -> None:
        if year is not None:
            self.year = year
            self._chosen.add("year")
        if month is not None:
            self.month = month
            self._chosen.add("month")

    def seed(self, records: Iterable[Record]) -> Period:
        latest = latest_period(records)
        if "year" not in self._chosen and self.year == ALL and latest.year != ALL:
            self.year = latest.year
            self._chosen.add("year")
        if "month" not in self._chosen and self.month == ALL and latest.month != ALL:
            self.month = latest.month
            self._chosen.add("month")
        return Period(self.year, self.month)


def support_view(
    records: Iterable[Record],
    year: str | None = None,
    month: str | None = None,
) -> dict[str, Any]:
    """Stats plus filter metadata; omitted filters default to the latest period."""
    items = list(records)
    state = SupportFilterState()
    state.select(year=year, month=month)
    period = state.seed(items)
    options = filter_options(items)
    return {
        "year": period.year,
        "month": period.month,
        "years": list(options.years),
        "months": list(options.months),
        "rows": [row.to_dict() for row in support_stats(items, period.year, period.month)],
    }
