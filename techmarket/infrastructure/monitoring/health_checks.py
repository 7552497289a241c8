"""
Health check implementations for the application.
"""

import time
from typing import Any, Dict, Optional

import redis.asyncio as redis
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from techmarket.config.logging import get_logger
from techmarket.config.settings import settings

logger = get_logger(__name__)


class HealthChecker:
    """Health checker for application components."""

    def __init__(self, db_session: Optional[AsyncSession] = None, redis_url: Optional[str] = None):
        self.db_session = db_session
        self.redis_url = redis_url or settings.broker_url
        self.checks = {
            "database": self._check_database,
            "broker": self._check_broker,
        }

    async def run_health_checks(self) -> Dict[str, Any]:
        """Run all health checks."""
        results = {}

        for check_name, check_func in self.checks.items():
            try:
                results[check_name] = await check_func()
            except Exception as e:
                logger.error("Health check failed", check_name=check_name, error=str(e))
                results[check_name] = {"status": "error", "error": str(e)}

        return results

    async def check_readiness(self) -> bool:
        """The API is ready when the database answers."""
        result = await self._check_database()
        return result["status"] == "healthy"

    async def _check_database(self) -> Dict[str, Any]:
        if self.db_session is None:
            return {"status": "error", "error": "no database session"}

        start = time.time()
        try:
            await self.db_session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy", "response_time_ms": (time.time() - start) * 1000}

    async def _check_broker(self) -> Dict[str, Any]:
        """Ping the Redis instance Celery uses for timers and sweeps."""
        start = time.time()
        client = redis.from_url(self.redis_url)
        try:
            await client.ping()
        except Exception as e:
            logger.error("Broker health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}
        finally:
            await client.aclose()
        return {"status": "healthy", "response_time_ms": (time.time() - start) * 1000}
