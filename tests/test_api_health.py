"""
Tests for crawlsync/api/health.py - liveness and readiness endpoints.
"""
from datetime import datetime
from unittest.mock import AsyncMock

from crawlsync.api.health import VERSION, health_check, readiness_check


class TestHealthCheck:
    async def test_returns_healthy(self):
        result = await health_check()
        assert result["status"] == "healthy"
        assert result["version"] == VERSION
        assert "timestamp" in result

    async def test_timestamp_is_utc_iso(self):
        result = await health_check()
        parsed = datetime.fromisoformat(result["timestamp"])
        assert parsed.tzinfo is not None


class TestReadinessCheck:
    async def test_database_reachable_is_ready(self):
        mock_db = AsyncMock()
        mock_db.execute = AsyncMock()

        result = await readiness_check(db=mock_db)

        assert result["status"] == "ready"
        assert result["checks"] == {"database": True}

    async def test_database_down_is_degraded(self):
        mock_db = AsyncMock()
        mock_db.execute = AsyncMock(side_effect=Exception("connection refused"))

        result = await readiness_check(db=mock_db)

        assert result["status"] == "degraded"
        assert result["checks"] == {"database": False}

    async def test_real_sqlite_session(self, session_factory):
        async with session_factory() as session:
            result = await readiness_check(db=session)
        assert result["status"] == "ready"
