"""Tests for create_sync_scheduler and parse_interval."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from po_mails.mail.graph_client import MailFetchError


class TestParseInterval:
    def test_parses_minutes(self) -> None:
        from po_mails.sync.scheduler import parse_interval
        assert parse_interval("30") == 30
        assert parse_interval("  5 ") == 5

    def test_empty_disables(self) -> None:
        from po_mails.sync.scheduler import parse_interval
        assert parse_interval(None) == 0
        assert parse_interval("") == 0

    def test_invalid_falls_back_to_fifteen(self) -> None:
        from po_mails.sync.scheduler import parse_interval
        assert parse_interval("often") == 15

    def test_negative_clamps_to_zero(self) -> None:
        from po_mails.sync.scheduler import parse_interval
        assert parse_interval("-3") == 0

    def test_interval_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from po_mails.sync.scheduler import interval_from_env
        monkeypatch.setenv("SYNC_INTERVAL_MINUTES", "20")
        assert interval_from_env() == 20


class TestCreateSyncScheduler:
    def test_returns_async_io_scheduler(self) -> None:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from po_mails.sync.scheduler import create_sync_scheduler

        scheduler = create_sync_scheduler(MagicMock(), 10)
        assert isinstance(scheduler, AsyncIOScheduler)

    def test_job_added_with_interval(self) -> None:
        from po_mails.sync.scheduler import create_sync_scheduler

        scheduler = create_sync_scheduler(MagicMock(), 10)
        jobs = scheduler.get_jobs()
        assert len(jobs) == 1
        assert jobs[0].trigger.interval == timedelta(minutes=10)

    def test_non_positive_interval_uses_default(self) -> None:
        from po_mails.sync.scheduler import create_sync_scheduler

        scheduler = create_sync_scheduler(MagicMock(), 0)
        assert scheduler.get_jobs()[0].trigger.interval == timedelta(minutes=15)


class TestRunSync:
    @pytest.mark.asyncio
    async def test_fetch_error_is_logged_not_raised(self) -> None:
        from po_mails.sync.scheduler import _run_sync

        service = MagicMock()
        service.sync = AsyncMock(side_effect=MailFetchError("down"))
        await _run_sync(service)
        service.sync.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_runs_sync(self) -> None:
        from po_mails.sync.scheduler import _run_sync

        service = MagicMock()
        service.sync = AsyncMock(return_value=[])
        await _run_sync(service)
        service.sync.assert_awaited_once()
