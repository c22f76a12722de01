"""Field grammar for the PO notification letter template.

Each rule names the label that introduces a value, the shape the value may
take and the labels that can follow it.  Rules are tried in table order and
interpreted by ``po_mails.processing.extractor.find_labeled_span``.
"""

from po_mails.processing.types import END, FieldRule, Scope

# Value shapes
_NAME = r"[A-Za-z\s]+?"
_FREE_TEXT = r".+?"
_PHONE = r"[+\d()\-.\s]+"
_EMAIL = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"
_LOCATION_CODE = r"[A-Z]{2,3}\b"
_RATE_CHARS = r"0-9,.kK/\sA-Za-z"
_RATE = f"[{_RATE_CHARS}]+?"
_RATE_STOP = f"[^{_RATE_CHARS}]"

# ── Interview Support sub-section ──────────────────────────────────────────────

#: Label pair that opens the Interview Support block.
SECTION_START: tuple[str, str] = ("Interview Support", "Support by")

#: Labels that close the Interview Support block, in priority order.
SECTION_END: tuple[str, ...] = ("Marketing Application", "Thanks", END)

# ── Field table ────────────────────────────────────────────────────────────────

FIELD_GRAMMAR: tuple[FieldRule, ...] = (
    FieldRule("candidate_name", "Name of Candidate:", _NAME, ("SST", "Location", "PO")),
    FieldRule("phone_number", "Personal Phone Number", _PHONE),
    FieldRule("email", "Email ID", _EMAIL),
    FieldRule("location", "Location", _LOCATION_CODE),
    FieldRule("position_applied", "Position that Applied:", _FREE_TEXT, ("Job Location",)),
    FieldRule("job_location", "Job Location:", _FREE_TEXT, ("Implementation/End Client",)),
    FieldRule(
        "end_client",
        "Implementation/End Client",
        _FREE_TEXT,
        ("Vendor Details", "Rate:"),
    ),
    FieldRule(
        "rate",
        "Rate:",
        _RATE,
        ("Interview Support", "Vendor Details", "Marketing Application", "Thanks", END),
        skip=r"\$?",
        stop=_RATE_STOP,
    ),
    FieldRule(
        "interview_support_by",
        None,
        _NAME,
        ("Team Lead",),
        scope=Scope.INTERVIEW_SUPPORT,
    ),
    FieldRule(
        "team_lead",
        "Team Lead",
        _NAME,
        ("Manager",),
        scope=Scope.INTERVIEW_SUPPORT,
    ),
    FieldRule(
        "manager",
        "Manager",
        _NAME,
        ("Marketing", END),
        scope=Scope.INTERVIEW_SUPPORT,
    ),
)
