from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
import uvicorn

from app.config import settings, setup_logging
from app.routers import SERVICE_VERSION, main_router
from app.services import DVRManager, PlexClient, dvr_scheduler


setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting DVR Manager...")
    settings.log_summary()

    try:
        client = PlexClient.from_settings(settings)
    except Exception as e:
        logger.error(f"Failed to start DVR Manager: {e}", exc_info=True)
        raise

    async with client:
        try:
            logger.info("Resolving libraries...")
            manager = await DVRManager.create(client, settings)

            logger.info("Starting scheduler...")
            dvr_scheduler.start(manager)
            logger.info("DVR Manager started successfully")
        except Exception as e:
            logger.error(f"Failed to start DVR Manager: {e}", exc_info=True)
            raise

        yield

        logger.info("Shutting down DVR Manager...")
        try:
            dvr_scheduler.shutdown()
        except Exception as e:
            logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    logger.info("DVR Manager stopped")


app = FastAPI(
    title="DVR Manager",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

app.include_router(main_router)


def main():
    """Run the service."""
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
