"""
Schedule Selector

Splits channel candidates into broadcasts that must be scheduled now and the
earliest future broadcast the loop should wake for.
"""
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta

from app.schemas import Broadcast
from app.services.fetch_types import ScheduleDecision
from app.utils.timezone import from_unix, to_unix


logger = logging.getLogger(__name__)

PRE_SCHEDULE_TIME = 30  # seconds before air time a subscription is created
IDLE_WAKE = timedelta(hours=1)


def select(candidates: Mapping[str, Broadcast | None], now: datetime) -> ScheduleDecision:
    """
    Classify candidates as due or future.

    A candidate starting less than PRE_SCHEDULE_TIME seconds from ``now`` is
    due. ``next_wake`` is the earliest future start, or ``now`` plus one hour
    when there are no future candidates.
    """
    now_ts = to_unix(now)
    due: list[Broadcast] = []
    due_channels: list[str] = []
    next_broadcast: Broadcast | None = None

    for channel_id, broadcast in candidates.items():
        if broadcast is None:
            continue

        begins_at = broadcast.begins_at_ts
        if begins_at - now_ts < PRE_SCHEDULE_TIME:
            logger.debug("[Channel %s] %s is due", channel_id, broadcast.show_title)
            due.append(broadcast)
            due_channels.append(channel_id)
        elif next_broadcast is None or begins_at < next_broadcast.begins_at_ts:
            next_broadcast = broadcast

    if next_broadcast is None:
        return ScheduleDecision(due=due, next_wake=now + IDLE_WAKE, due_channels=due_channels)

    logger.info(
        "Next show is %s due to start at %s",
        next_broadcast.show_title,
        next_broadcast.begins_at.isoformat(),
    )
    return ScheduleDecision(
        due=due,
        next_wake=from_unix(next_broadcast.begins_at_ts),
        next_broadcast=next_broadcast,
        due_channels=due_channels,
    )
