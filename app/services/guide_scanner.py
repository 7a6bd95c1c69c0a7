"""
Guide Scanner

Fetches a three-day grid window for every channel concurrently and reduces
each channel to its earliest upcoming broadcast that is not yet scheduled.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from app.schemas import Broadcast, Channel
from app.utils.timezone import grid_dates, to_unix


logger = logging.getLogger(__name__)


class GridSource(Protocol):
    async def list_channels(self) -> list[Channel]: ...

    async def get_grid(self, channel_id: str, date: str) -> list[Broadcast] | None: ...


def filter_channels(channels: Iterable[Channel], allowed: Sequence[str] | None) -> list[Channel]:
    """Apply the configured allow-list; an empty list keeps every channel"""
    channels = list(channels)
    if not allowed:
        return channels
    allowed_ids = set(allowed)
    return [channel for channel in channels if channel.id in allowed_ids]


def earliest_eligible(broadcasts: Iterable[Broadcast], now_ts: int) -> Broadcast | None:
    """
    Pick the earliest broadcast that starts at or after ``now_ts`` and has no
    episode or series subscription. Ties keep the first seen.
    """
    eligible = [
        b for b in broadcasts
        if b.begins_at_ts >= now_ts and not b.is_subscribed
    ]
    return min(eligible, key=lambda b: b.begins_at_ts, default=None)


async def _scan_channel(
    client: GridSource,
    channel_id: str,
    dates: Sequence[str],
    now_ts: int,
) -> tuple[str, Broadcast | None]:
    grids = await asyncio.gather(*(client.get_grid(channel_id, date) for date in dates))
    broadcasts = [b for grid in grids for b in (grid or [])]
    candidate = earliest_eligible(broadcasts, now_ts)

    if candidate:
        logger.debug(
            "[Channel %s] %s entries, next: %s at %s",
            channel_id,
            len(broadcasts),
            candidate.show_title,
            candidate.begins_at_ts,
        )
    else:
        logger.debug("[Channel %s] %s entries, nothing to schedule", channel_id, len(broadcasts))
    return channel_id, candidate


async def scan(
    client: GridSource,
    channels: Sequence[Channel],
    now: datetime,
) -> dict[str, Broadcast | None]:
    """
    Find each channel's next schedulable broadcast.

    Args:
        client: Guide client
        channels: Channels to scan
        now: Reference time; broadcasts starting before it are ignored

    Returns:
        Mapping of channel id to candidate (None if nothing eligible)

    Raises:
        GuideError: If any channel's grid can't be fetched
    """
    dates = grid_dates(now)
    now_ts = to_unix(now)

    tasks = [
        asyncio.create_task(_scan_channel(client, channel.id, dates, now_ts))
        for channel in channels
    ]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    candidates = dict(results)
    logger.info(
        "Scanned %s channels (%s): %s candidates",
        len(channels),
        ", ".join(dates),
        sum(1 for c in candidates.values() if c is not None),
    )
    return candidates
