"""Types for the PO extraction pipeline."""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

from po_mails.mail.types import RawMessage, Sender


class Scope(str, Enum):
    """Which part of the normalized text a field rule searches."""

    BODY = "body"
    INTERVIEW_SUPPORT = "interview_support"


#: Terminator token meaning "end of the searched text".
END = "$"


@dataclass(frozen=True)
class FieldRule:
    """One row of the field grammar.

    The value is captured after ``anchor`` (an optional trailing colon and
    whitespace are skipped) as the shortest/longest run matching ``shape``
    that is followed by one of ``terminators``.  ``stop`` is an extra raw
    lookahead alternative that may also end the value.  With no terminators
    the shape alone bounds the value.  ``anchor=None`` anchors at the start
    of the searched text.
    """

    name: str
    anchor: str | None
    shape: str
    terminators: tuple[str, ...] = ()
    skip: str = ""
    stop: str = ""
    scope: Scope = Scope.BODY


# ── Extraction result ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExtractedFields:
    """Labeled PO fields pulled out of a single message body.

    Every field is either a trimmed, non-empty string or ``None``.
    """

    candidate_name: str | None = None
    phone_number: str | None = None
    email: str | None = None
    location: str | None = None
    position_applied: str | None = None
    job_location: str | None = None
    end_client: str | None = None
    rate: str | None = None
    interview_support_by: str | None = None
    team_lead: str | None = None
    manager: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> dict[str, str]:
        """JSON shape: absent values are rendered as empty strings."""
        return {key: value or "" for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ExtractedFields":
        data = data or {}
        values: dict[str, str | None] = {}
        for name in cls.field_names():
            raw = data.get(name)
            text = str(raw).strip() if raw is not None else ""
            values[name] = text or None
        return cls(**values)


# ── Record ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Record:
    """A fetched message joined with its extracted fields.

    This is the unit that is stored, grouped and displayed.  Records are never
    patched: re-fetching the same id produces a new Record that replaces the
    old one wholesale.
    """

    id: str
    subject: str
    sender: Sender | None
    received_at: str
    body_preview: str
    web_link: str
    extracted: ExtractedFields

    @classmethod
    def from_message(cls, message: RawMessage, extracted: ExtractedFields) -> "Record":
        return cls(
            id=message.id,
            subject=message.subject,
            sender=message.sender,
            received_at=message.received_at,
            body_preview=message.body_preview,
            web_link=message.web_link,
            extracted=extracted,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the record JSON contract consumed by the viewer."""
        return {
            "id": self.id,
            "subject": self.subject,
            "from": self.sender.to_dict() if self.sender else None,
            "receivedDateTime": self.received_at,
            "bodyPreview": self.body_preview,
            "webLink": self.web_link,
            "extracted": self.extracted.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        return cls(
            id=str(data.get("id") or ""),
            subject=str(data.get("subject") or ""),
            sender=Sender.from_dict(data.get("from")),
            received_at=str(data.get("receivedDateTime") or ""),
            body_preview=str(data.get("bodyPreview") or ""),
            web_link=str(data.get("webLink") or ""),
            extracted=ExtractedFields.from_dict(data.get("extracted")),
        )
