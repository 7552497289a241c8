"""
Event loop helper for Celery tasks.
"""

import asyncio

from techmarket.config.logging import get_logger

logger = get_logger(__name__)


def run_async_in_new_loop(coro):
    """
    Run an async coroutine in a new event loop.

    Each Celery task gets its own event loop so async resources never leak
    between tasks running in the same worker process.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    except Exception as e:
        logger.error("Error in async execution", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        asyncio.set_event_loop(None)
        loop.close()
