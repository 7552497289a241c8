"""
Main application entry point.
"""

from techmarket.api.app import create_app
from techmarket.config.logging import get_logger
from techmarket.config.settings import settings

logger = get_logger(__name__)

app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    logger.info(
        "Starting technician marketplace server",
        host=settings.API_HOST,
        port=settings.API_PORT,
    )
    uvicorn.run(
        "techmarket.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
