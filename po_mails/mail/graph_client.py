"""Mailbox client — pages PO notifications out of the mail passthrough API."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from po_mails.mail.types import RawMessage, Sender
from po_mails.views.dates import timestamp

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.picaos.com/v1/passthrough/me/mailFolders/Inbox/messages"
_TIMEOUT_SECONDS = 30.0
_FETCH_RETRIES = 3
_RETRY_BASE_SECONDS = 1.0


class MailFetchError(Exception):
    """Raised when the mailbox API cannot be read.

    ``detail`` carries whatever the upstream returned (decoded JSON when
    possible) so the HTTP layer can pass it through to the caller.
    """

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.detail = detail


@dataclass(frozen=True)
class MailConfig:
    """Credentials and query window for the mailbox passthrough API."""

    api_key: str
    connection_key: str
    action_id: str
    action_env: str = "test"
    base_url: str = _DEFAULT_BASE_URL
    sender_address: str = ""
    subject_keyword: str = "PO"
    days_back: int = 35
    page_size: int = 100

    @classmethod
    def from_env(cls) -> "MailConfig":
        """Build MailConfig from environment variables.

        Raises:
            ValueError: if a required credential is missing.
        """
        missing = [
            name
            for name in ("PICAOS_API_KEY", "PICAOS_CONNECTION_KEY", "PICA_ACTION_ID")
            if not os.environ.get(name)
        ]
        if missing:
            raise ValueError(f"Missing mailbox credentials: {', '.join(missing)}")
        return cls(
            api_key=os.environ["PICAOS_API_KEY"],
            connection_key=os.environ["PICAOS_CONNECTION_KEY"],
            action_id=os.environ["PICA_ACTION_ID"],
            action_env=os.environ.get("PICA_ACTION_ENV", "test"),
            base_url=os.environ.get("PO_MAILBOX_URL", _DEFAULT_BASE_URL),
            sender_address=os.environ.get("PO_SENDER_ADDRESS", ""),
            subject_keyword=os.environ.get("PO_SUBJECT_KEYWORD", "PO"),
            days_back=int(os.environ.get("PO_DAYS_BACK", "35")),
            page_size=int(os.environ.get("PO_PAGE_SIZE", "100")),
        )

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-pica-secret": self.api_key,
            "x-pica-connection-key": self.connection_key,
            "x-pica-action-id": self.action_id,
            "X-Pica-Action-Environment": self.action_env,
        }


def _iso(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def build_params(config: MailConfig, now: datetime | None = None) -> dict[str, Any]:
    """OData query for PO mails received in the last ``days_back`` days."""
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(days=config.days_back)
    clauses = []
    if config.sender_address:
        clauses.append(f"from/emailAddress/address eq '{config.sender_address}'")
    clauses.append(f"contains(subject,'{config.subject_keyword}')")
    clauses.append(f"receivedDateTime ge {_iso(start)}")
    clauses.append(f"receivedDateTime lt {_iso(end)}")
    return {"$filter": " and ".join(clauses), "$top": config.page_size}


def _error_detail(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason_phrase


class MailClient:
    """Thin async wrapper around the mailbox passthrough endpoint.

    Use the ``mail_client()`` context manager to construct and tear down the
    underlying HTTP client correctly.
    """

    def __init__(self, http: httpx.AsyncClient, config: MailConfig) -> None:
        self._http = http
        self._config = config

    async def fetch_messages(self, now: datetime | None = None) -> list[RawMessage]:
        """Return every message in the query window, oldest first.

        Follows ``@odata.nextLink`` until the API stops returning one.

        Raises:
            MailFetchError: on an HTTP error status or a persistent transport failure.
        """
        url: str | None = self._config.base_url
        params: dict[str, Any] | None = build_params(self._config, now)
        raw: list[dict[str, Any]] = []
        pages = 0

        while url:
            data = await self._get_page(url, params)
            page = data.get("value") or []
            raw.extend(m for m in page if isinstance(m, dict))
            pages += 1
            logger.debug("Page %d: %d message(s)", pages, len(page))
            url = data.get("@odata.nextLink") or None
            params = None  # the next link already carries the query

        messages = [self._parse_message(m) for m in raw]
        messages.sort(key=lambda m: timestamp(m.received_at))
        logger.info("Fetched %d PO message(s) across %d page(s)", len(messages), pages)
        return messages

    # ── Internal helpers ───────────────────────────────────────────────────────

    async def _get_page(self, url: str, params: dict[str, Any] | None) -> dict[str, Any]:
        last_err: httpx.RequestError | None = None
        for attempt in range(1, _FETCH_RETRIES + 1):
            try:
                response = await self._http.get(url, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                raise MailFetchError(
                    f"Mailbox API returned {status}", detail=_error_detail(exc.response)
                ) from exc
            except httpx.RequestError as exc:
                last_err = exc
                if attempt < _FETCH_RETRIES:
                    delay = _RETRY_BASE_SECONDS * 2 ** (attempt - 1)
                    logger.warning(
                        "Mailbox request failed (attempt %d/%d): %s; retrying in %.1fs",
                        attempt,
                        _FETCH_RETRIES,
                        exc,
                        delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                break
            try:
                data = response.json()
            except ValueError as exc:
                raise MailFetchError("Mailbox API returned invalid JSON", detail=response.text) from exc
            return data if isinstance(data, dict) else {}

        raise MailFetchError(
            f"Mailbox API unreachable after {_FETCH_RETRIES} attempts", detail=str(last_err)
        ) from last_err

    @staticmethod
    def _parse_message(data: dict[str, Any]) -> RawMessage:
        """Map one API message dict to a RawMessage."""
        sender_raw = (data.get("from") or {}).get("emailAddress")
        body = data.get("body") or {}
        return RawMessage(
            id=str(data.get("id") or ""),
            subject=str(data.get("subject") or ""),
            sender=Sender.from_dict(sender_raw) if isinstance(sender_raw, dict) else None,
            received_at=str(data.get("receivedDateTime") or ""),
            body_preview=str(data.get("bodyPreview") or ""),
            web_link=str(data.get("webLink") or ""),
            body_html=str(body.get("content") or "") if isinstance(body, dict) else "",
        )


@asynccontextmanager
async def mail_client(
    config: MailConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[MailClient]:
    """Async context manager that yields a ready-to-use MailClient.

    Args:
        config: Mailbox settings. Falls back to ``MailConfig.from_env()``.
        transport: Optional httpx transport (tests pass a MockTransport).

    Example::

        async with mail_client() as client:
            messages = await client.fetch_messages()
    """
    cfg = config or MailConfig.from_env()
    async with httpx.AsyncClient(
        headers=cfg.headers(),
        timeout=_TIMEOUT_SECONDS,
        transport=transport,
    ) as http:
        yield MailClient(http, cfg)
