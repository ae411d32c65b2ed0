"""Tests for engine and session factory construction."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.core import database


class TestCreateEngine:
    def test_pool_settings_come_from_config(self, test_settings):
        test_settings.db_pool_size = 3
        test_settings.db_max_overflow = 1
        test_settings.db_pool_recycle_seconds = 60
        engine = MagicMock()
        with patch.object(database, "create_async_engine", return_value=engine) as create:
            created, session_factory = database.create_engine(test_settings)

        assert created is engine
        args, kwargs = create.call_args
        assert args[0] == test_settings.database_url
        assert kwargs["pool_size"] == 3
        assert kwargs["max_overflow"] == 1
        assert kwargs["pool_recycle"] == 60
        assert kwargs["pool_pre_ping"] is True
        assert session_factory.class_ is AsyncSession
        assert session_factory.kw["expire_on_commit"] is False

    def test_default_pool_settings(self, test_settings):
        with patch.object(database, "create_async_engine", return_value=MagicMock()) as create:
            database.create_engine(test_settings)
        kwargs = create.call_args.kwargs
        assert (kwargs["pool_size"], kwargs["max_overflow"], kwargs["pool_recycle"]) == (10, 5, 300)
