"""Shared pytest fixtures."""

import pytest


@pytest.fixture
def po_html_body() -> str:
    """A PO notification body in the letter template the extractor targets."""
    return """<html><head><style>.po { color: red; }</style></head><body>
<p>Hi Team,</p>
<p>Please find the PO details below.</p>
<p>Manager approval pending</p>
<table>
  <tr><td>Name of Candidate:</td><td>Jane Doe</td></tr>
  <tr><td>SST</td><td>Yes</td></tr>
  <tr><td>Location</td><td>USA</td></tr>
  <tr><td>Personal Phone Number</td><td>+1 (555) 123-4567</td></tr>
  <tr><td>Email ID</td><td>jane.doe@example.com</td></tr>
  <tr><td>Position that Applied:</td><td>Senior Java Developer</td></tr>
  <tr><td>Job Location:</td><td>Dallas, TX</td></tr>
  <tr><td>Implementation/End Client</td><td>AcmeCo</td></tr>
  <tr><td>Vendor Details</td><td>Vendor Inc</td></tr>
  <tr><td>Rate:</td><td>$55.00/hr</td></tr>
</table>
<p>Interview Support</p>
<p>Support by Alice Smith</p>
<p>Team Lead Bob Stone</p>
<p>Manager Carol King</p>
<p>Marketing Application Link</p>
<p>Thanks&nbsp;&amp; Regards</p>
<script>var tracking = "Manager Zed";</script>
</body></html>"""


@pytest.fixture
def sample_raw_message() -> dict[str, object]:
    """A minimal mailbox API message object for use in tests."""
    return {
        "id": "msg_001",
        "subject": "PO - Jane Doe - AcmeCo",
        "from": {"emailAddress": {"name": "Recruiting Ops", "address": "ops@example.com"}},
        "receivedDateTime": "2024-03-15T10:00:00Z",
        "bodyPreview": "Hi Team, Please find the PO details below. Name of Candidate: Jane Doe",
        "webLink": "https://outlook.example.com/msg_001",
        "body": {"contentType": "html", "content": "<p>Name of Candidate: Jane Doe SST</p>"},
    }
