"""Data types shared across mailbox client modules."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Sender:
    """Display name and address of a message sender."""

    name: str
    address: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "address": self.address}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Sender | None":
        if not data:
            return None
        return cls(name=str(data.get("name") or ""), address=str(data.get("address") or ""))


@dataclass(frozen=True)
class RawMessage:
    """A PO notification as returned by the mailbox API, before extraction.

    ``received_at`` is kept as the ISO-8601 string the API sent (or ``""``)
    so that malformed values survive unchanged into the stored record.
    """

    id: str
    subject: str
    sender: Sender | None
    received_at: str
    body_preview: str
    web_link: str
    body_html: str = ""
