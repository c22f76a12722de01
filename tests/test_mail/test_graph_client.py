"""Tests for MailClient — every HTTP call goes through httpx.MockTransport."""

from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from po_mails.mail.graph_client import (
    MailClient,
    MailConfig,
    MailFetchError,
    build_params,
    mail_client,
)
from po_mails.mail.types import RawMessage, Sender

BASE_URL = "https://mail.test/messages"
NEXT_URL = "https://mail.test/messages?$skiptoken=page2"


# ── Helpers ────────────────────────────────────────────────────────────────────


def make_config(**overrides: Any) -> MailConfig:
    defaults: dict[str, Any] = dict(
        api_key="sk_test",
        connection_key="conn_test",
        action_id="action_test",
        base_url=BASE_URL,
        sender_address="recruiter@example.com",
    )
    return MailConfig(**{**defaults, **overrides})


def api_message(id: str, received: str, subject: str = "PO") -> dict[str, Any]:
    return {
        "id": id,
        "subject": subject,
        "from": {"emailAddress": {"name": "Ops", "address": "ops@example.com"}},
        "receivedDateTime": received,
        "bodyPreview": "preview",
        "webLink": f"https://outlook.example.com/{id}",
        "body": {"contentType": "html", "content": f"<p>{id}</p>"},
    }


# ── Config ─────────────────────────────────────────────────────────────────────


class TestMailConfig:
    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PICAOS_API_KEY", "k")
        monkeypatch.setenv("PICAOS_CONNECTION_KEY", "c")
        monkeypatch.setenv("PICA_ACTION_ID", "a")
        monkeypatch.setenv("PO_DAYS_BACK", "10")
        monkeypatch.delenv("PICA_ACTION_ENV", raising=False)
        config = MailConfig.from_env()
        assert config.api_key == "k"
        assert config.days_back == 10
        assert config.action_env == "test"

    def test_from_env_missing_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PICAOS_API_KEY", "PICAOS_CONNECTION_KEY", "PICA_ACTION_ID"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ValueError, match="PICAOS_API_KEY"):
            MailConfig.from_env()

    def test_headers(self) -> None:
        headers = make_config().headers()
        assert headers["x-pica-secret"] == "sk_test"
        assert headers["x-pica-connection-key"] == "conn_test"
        assert headers["x-pica-action-id"] == "action_test"
        assert headers["X-Pica-Action-Environment"] == "test"


class TestBuildParams:
    def test_filter_window(self) -> None:
        now = datetime(2024, 3, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)
        params = build_params(make_config(), now)
        assert params["$top"] == 100
        assert params["$filter"] == (
            "from/emailAddress/address eq 'recruiter@example.com' "
            "and contains(subject,'PO') "
            "and receivedDateTime ge 2024-02-09T10:00:00.123Z "
            "and receivedDateTime lt 2024-03-15T10:00:00.123Z"
        )

    def test_sender_clause_optional(self) -> None:
        params = build_params(make_config(sender_address=""))
        assert params["$filter"].startswith("contains(subject,'PO')")


# ── Fetch ──────────────────────────────────────────────────────────────────────


class TestFetchMessages:
    @pytest.mark.asyncio
    async def test_follows_next_link_and_sorts_ascending(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if len(seen) == 1:
                return httpx.Response(200, json={
                    "value": [api_message("b", "2024-03-10T00:00:00Z")],
                    "@odata.nextLink": NEXT_URL,
                })
            return httpx.Response(200, json={
                "value": [api_message("a", "2024-03-01T00:00:00Z")],
            })

        async with mail_client(make_config(), transport=httpx.MockTransport(handler)) as client:
            messages = await client.fetch_messages()

        assert [m.id for m in messages] == ["a", "b"]
        assert len(seen) == 2
        assert "$filter" in seen[0].url.params
        assert seen[0].headers["x-pica-secret"] == "sk_test"
        assert "$filter" not in seen[1].url.params
        assert seen[1].url.params["$skiptoken"] == "page2"

    @pytest.mark.asyncio
    async def test_empty_page(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
        async with mail_client(make_config(), transport=transport) as client:
            assert await client.fetch_messages() == []

    @pytest.mark.asyncio
    async def test_http_error_carries_detail(self) -> None:
        body = {"error": {"code": "InvalidAuthenticationToken"}}
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json=body))
        async with mail_client(make_config(), transport=transport) as client:
            with pytest.raises(MailFetchError) as excinfo:
                await client.fetch_messages()
        assert "401" in str(excinfo.value)
        assert excinfo.value.detail == body

    @pytest.mark.asyncio
    async def test_transport_error_retries_then_raises(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("po_mails.mail.graph_client._RETRY_BASE_SECONDS", 0.0)
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("connection refused", request=request)

        async with mail_client(make_config(), transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(MailFetchError) as excinfo:
                await client.fetch_messages()

        assert calls == 3
        assert "connection refused" in str(excinfo.value.detail)

    @pytest.mark.asyncio
    async def test_transient_error_recovers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("po_mails.mail.graph_client._RETRY_BASE_SECONDS", 0.0)
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json={"value": [api_message("a", "2024-03-01T00:00:00Z")]})

        async with mail_client(make_config(), transport=httpx.MockTransport(handler)) as client:
            messages = await client.fetch_messages()
        assert [m.id for m in messages] == ["a"]


# ── _parse_message ─────────────────────────────────────────────────────────────


class TestParseMessage:
    def test_full_message(self, sample_raw_message: dict[str, Any]) -> None:
        message = MailClient._parse_message(sample_raw_message)
        assert message == RawMessage(
            id="msg_001",
            subject="PO - Jane Doe - AcmeCo",
            sender=Sender("Recruiting Ops", "ops@example.com"),
            received_at="2024-03-15T10:00:00Z",
            body_preview=sample_raw_message["bodyPreview"],  # type: ignore[arg-type]
            web_link="https://outlook.example.com/msg_001",
            body_html="<p>Name of Candidate: Jane Doe SST</p>",
        )

    def test_missing_fields_default_to_empty(self) -> None:
        message = MailClient._parse_message({})
        assert message.id == ""
        assert message.sender is None
        assert message.received_at == ""
        assert message.body_html == ""
