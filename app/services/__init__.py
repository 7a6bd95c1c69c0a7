"""
Services package for the DVR manager

This package contains the guide client and the scheduling pipeline.
"""
from app.services.dvr_manager import DVRManager
from app.services.plex_client import PlexClient
from app.services.scheduler_service import dvr_scheduler

__all__ = [
    'DVRManager',
    'PlexClient',
    'dvr_scheduler',
]
