"""Main application entry point for the Mega-Sena analytics service."""

import uvicorn
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from analysis.history import history_store
from api.routes import app, simulator
from scraping.provider import DataProviderError, megasena_provider
from utils.scheduler import scheduler
import structlog


# Configure structured logging
def setup_logging():
    """Setup structured logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if settings.log_format == "json":
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )


def load_initial_history(logger: logging.Logger) -> bool:
    """Load the history once at startup; the service still runs without it."""
    try:
        history_store.replace(megasena_provider.fetch_dataset())
        return True
    except DataProviderError as e:
        logger.warning(f"Initial history load failed, use POST /history/refresh later: {e}")
        return False


def main():
    """Main application entry point."""
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting Mega-Sena Analytics")
    logger.info(f"Log level: {settings.log_level}")

    try:
        if settings.load_history_on_startup:
            logger.info("Loading historical draws...")
            load_initial_history(logger)

        if settings.enable_scheduler:
            logger.info("Starting background scheduler...")
            scheduler.start()

        logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")

        if settings.api_reload:
            # Use import string for reload mode
            uvicorn.run(
                "api.routes:app",
                host=settings.api_host,
                port=settings.api_port,
                reload=True,
                log_level=settings.log_level.lower(),
                access_log=True
            )
        else:
            uvicorn.run(
                app,
                host=settings.api_host,
                port=settings.api_port,
                reload=False,
                log_level=settings.log_level.lower(),
                access_log=True
            )

    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    except Exception as e:
        logger.error(f"Application startup failed: {e}")
        sys.exit(1)
    finally:
        simulator.shutdown()
        if scheduler.is_running:
            logger.info("Shutting down scheduler...")
            scheduler.stop()

        logger.info("Application shutdown complete")


if __name__ == "__main__":
    main()
