"""Tests for pattern mining routes.

Tests the /api/v1/patterns endpoints for single-user mining, the
all-users batch, and listing stored patterns.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from flowminer.mining.miner import BatchMiningResult, UserMiningOutcome
from flowminer.mining.store import FetchError


class TestMineRoutes:
    @pytest.mark.asyncio
    async def test_mine_single_user(
        self, client: AsyncClient, mock_db_session: AsyncMock, user_id: uuid.UUID
    ) -> None:
        with patch("flowminer.api.routes.patterns.mine_patterns_for_user", AsyncMock(return_value=4)) as mine:
            response = await client.post(f"/api/v1/patterns/mine/{user_id}")

        assert response.status_code == 200
        assert response.json() == {"user_id": str(user_id), "patterns_stored": 4}
        assert mine.call_args.args[1] == user_id
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mine_single_user_store_unavailable(
        self, client: AsyncClient, mock_db_session: AsyncMock, user_id: uuid.UUID
    ) -> None:
        with patch(
            "flowminer.api.routes.patterns.mine_patterns_for_user",
            AsyncMock(side_effect=FetchError("timeout")),
        ):
            response = await client.post(f"/api/v1/patterns/mine/{user_id}")

        assert response.status_code == 503
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mine_rejects_malformed_user_id(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/patterns/mine/not-a-uuid")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_mine_all_users(self, client: AsyncClient, test_settings) -> None:
        batch = BatchMiningResult(
            users_processed=2,
            patterns_stored=5,
            users_failed=1,
            outcomes=[
                UserMiningOutcome(user_id="u1", patterns_stored=5),
                UserMiningOutcome(user_id="u2", error="store unreachable"),
            ],
            run_at="2026-03-09T12:00:00+00:00",
            duration_ms=40.5,
        )
        test_settings.mining_batch_concurrency = 3
        with patch("flowminer.api.routes.patterns.mine_all_users", AsyncMock(return_value=batch)) as mine:
            response = await client.post("/api/v1/patterns/mine")

        assert response.status_code == 200
        data = response.json()
        assert data["users_processed"] == 2
        assert data["users_failed"] == 1
        assert data["outcomes"][1]["error"] == "store unreachable"
        assert mine.call_args.kwargs["concurrency"] == 3

    @pytest.mark.asyncio
    async def test_mine_all_users_cannot_list_users(self, client: AsyncClient) -> None:
        with patch(
            "flowminer.api.routes.patterns.mine_all_users",
            AsyncMock(side_effect=FetchError("down")),
        ):
            response = await client.post("/api/v1/patterns/mine")
        assert response.status_code == 503


class TestListPatterns:
    @pytest.mark.asyncio
    async def test_list_patterns(
        self, client: AsyncClient, mock_db_session: AsyncMock, user_id: uuid.UUID
    ) -> None:
        seen = datetime(2026, 3, 8, 10, 0, tzinfo=UTC)
        row = SimpleNamespace(
            id=uuid.uuid4(),
            user_id=user_id,
            pattern_type="frequency",
            sequence=["nav:a.com", "click:a.com", "form:a.com"],
            support=6,
            confidence=1.5,
            first_seen=seen,
            last_seen=seen,
        )
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = [row]
        mock_db_session.execute.return_value = mock_result

        response = await client.get("/api/v1/patterns", params={"user_id": str(user_id)})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["sequence"] == ["nav:a.com", "click:a.com", "form:a.com"]
        assert data["items"][0]["confidence"] == 1.5
        assert data["items"][0]["last_seen"] == seen.isoformat()

    @pytest.mark.asyncio
    async def test_user_id_required(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/patterns")
        assert response.status_code == 422
