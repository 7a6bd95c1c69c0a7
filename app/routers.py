from fastapi import APIRouter, HTTPException
import logging

from app.services import dvr_scheduler


logger = logging.getLogger(__name__)

main_router = APIRouter()

SERVICE_NAME = "DVR Manager"
SERVICE_VERSION = "0.1.0"


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = dvr_scheduler.get_next_run_time()

    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "next_scheduled_cycle": next_run.isoformat() if next_run else None,
        "endpoints": {
            "scan": "/scan - Run a scheduling cycle now (POST)",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = dvr_scheduler.get_next_run_time()
    manager = dvr_scheduler.manager
    last = dvr_scheduler.last_result

    return {
        "status": "ok",
        "scheduler_running": dvr_scheduler.running,
        "next_cycle": next_run.isoformat() if next_run else None,
        "libraries": {
            "tv": manager.libraries.tv,
            "film": manager.libraries.film,
        } if manager else None,
        "last_cycle": last.to_dict() if last else None,
    }


@main_router.post("/scan")
async def trigger_scan() -> dict:
    """
    Manually trigger a scheduling cycle

    Scans the guide, schedules anything due and re-arms the loop.
    """
    if dvr_scheduler.manager is None:
        raise HTTPException(status_code=503, detail="Scheduler not started")

    logger.info("Manual DVR cycle triggered via API")
    return await dvr_scheduler.run_cycle()
