"""PO field extraction — anchor/terminator matching over normalized text."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import TYPE_CHECKING

from po_mails.mail.types import RawMessage
from po_mails.processing.grammar import FIELD_GRAMMAR, SECTION_END, SECTION_START
from po_mails.processing.normalizer import html_to_text, normalize_text
from po_mails.processing.types import END, ExtractedFields, FieldRule, Record, Scope

if TYPE_CHECKING:
    from po_mails.storage.db import RecordDatabase

logger = logging.getLogger(__name__)


def _label(text: str) -> str:
    """Regex for a literal label, tolerant of any whitespace between words."""
    return r"\s+".join(re.escape(word) for word in text.split())


def _lookahead(terminators: tuple[str, ...], stop: str = "") -> str:
    alternatives = [
        "$" if token == END else r"\s+" + _label(token) for token in terminators
    ]
    if stop:
        alternatives.append(stop)
    return "(?=" + "|".join(alternatives) + ")"


@lru_cache(maxsize=None)
def compile_rule(rule: FieldRule) -> re.Pattern[str]:
    """Build the case-insensitive search pattern for one grammar rule."""
    if rule.anchor is None:
        head = "^"
    else:
        head = _label(rule.anchor.rstrip(":")) + r":?\s*"
    tail = _lookahead(rule.terminators, rule.stop) if rule.terminators else ""
    return re.compile(f"{head}{rule.skip}({rule.shape}){tail}", re.IGNORECASE)


_SECTION_PATTERN = re.compile(
    _label(SECTION_START[0])
    + r"\s*"
    + _label(SECTION_START[1])
    + r":?\s*(.+?)"
    + _lookahead(SECTION_END),
    re.IGNORECASE,
)


# ── Public API ─────────────────────────────────────────────────────────────────


def find_labeled_span(rule: FieldRule, text: str) -> str | None:
    """Return the first value matching ``rule`` in ``text``, trimmed, or None."""
    if not text:
        return None
    match = compile_rule(rule).search(text)
    if match is None:
        return None
    value = match.group(1).strip()
    return value or None


def isolate_interview_section(text: str) -> str:
    """Return the body of the Interview Support block, or "" when absent.

    The block runs from just after "Interview Support … Support by" to the
    first "Marketing Application", "Thanks" or the end of the text.
    """
    match = _SECTION_PATTERN.search(text or "")
    return match.group(1).strip() if match else ""


def extract_fields(text: str | None) -> ExtractedFields:
    """Apply the field grammar to plain text.  Never raises."""
    body = normalize_text(text)
    sources = {
        Scope.BODY: body,
        Scope.INTERVIEW_SUPPORT: isolate_interview_section(body),
    }
    values = {
        rule.name: find_labeled_span(rule, sources[rule.scope]) for rule in FIELD_GRAMMAR
    }
    return ExtractedFields(**values)


def extract_from_html(html: str | None) -> ExtractedFields:
    """Normalize an HTML body and extract its PO fields."""
    return extract_fields(html_to_text(html))


# ── Processor ──────────────────────────────────────────────────────────────────


class RecordProcessor:
    """Turns fetched messages into Records and optionally persists them.

    Extraction has no cross-message state, so a processor can be shared
    freely.  Storage failures are logged, not raised, so one bad row does not
    abort a sync.
    """

    def __init__(self, db: RecordDatabase | None = None) -> None:
        self._db = db

    def build(self, message: RawMessage) -> Record:
        """Extract fields from a message without touching storage."""
        return Record.from_message(message, extract_from_html(message.body_html))

    def process(self, message: RawMessage) -> Record:
        """Extract fields and upsert the resulting Record."""
        record = self.build(message)
        if self._db is not None:
            try:
                self._db.upsert(record)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Failed to store record %s: %s",
                    record.id,
                    exc,
                    exc_info=True,
                )
        logger.debug(
            "record=%s candidate=%r client=%r support=%r",
            record.id,
            record.extracted.candidate_name,
            record.extracted.end_client,
            record.extracted.interview_support_by,
        )
        return record
