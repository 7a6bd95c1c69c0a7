"""
DVR Manager

Runs one scheduling cycle: list channels, scan the guide, decide what is due,
and create subscriptions for due broadcasts.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Protocol

from app.config import DVRSettings
from app.exceptions import GuideError, SubmissionError, TemplateError
from app.schemas import Broadcast, Subscription
from app.services.fetch_types import CycleFailure, CycleResult, LibraryIds
from app.services.guide_scanner import GridSource, filter_channels, scan
from app.services.library_resolver import DirectorySource, resolve_libraries
from app.services.schedule_selector import PRE_SCHEDULE_TIME, select
from app.services.subscription_builder import TemplateSource, build
from app.utils.timezone import utc_now


logger = logging.getLogger(__name__)


class GuideClient(GridSource, DirectorySource, TemplateSource, Protocol):
    """Everything a cycle needs from the media server"""

    async def create_subscription(self, subscription: Subscription) -> None: ...


class DVRManager:
    """Schedules recordings just before they air.

    Failures are isolated: a guide error ends the cycle early and asks to be
    woken again after ``error_retry``; a failure for one due broadcast is
    recorded and the others still proceed.
    """

    def __init__(
        self,
        client: GuideClient,
        libraries: LibraryIds,
        *,
        channels: Sequence[str] = (),
        error_retry: timedelta = timedelta(seconds=60),
    ) -> None:
        self.client = client
        self.libraries = libraries
        self.channels = list(channels)
        self.error_retry = error_retry

    @classmethod
    async def create(cls, client: GuideClient, config: DVRSettings) -> DVRManager:
        """Resolve libraries once and build a manager around them"""
        libraries = await resolve_libraries(
            client,
            tv_default=config.tv_library_id,
            film_default=config.film_library_id,
        )
        return cls(
            client,
            libraries,
            channels=config.channels,
            error_retry=timedelta(seconds=config.error_retry_sec),
        )

    async def schedule_recording(self, broadcast: Broadcast) -> Subscription:
        logger.info("Beginning automatic recording of %s", broadcast.show_title)
        subscription = await build(self.client, broadcast, self.libraries)
        await self.client.create_subscription(subscription)
        logger.info(
            "Scheduled %s (%s) into library %s",
            broadcast.show_title,
            broadcast.guid,
            subscription.target_library_section_id,
        )
        return subscription

    async def _schedule_isolated(self, channel_id: str, broadcast: Broadcast) -> CycleFailure | None:
        try:
            await self.schedule_recording(broadcast)
            return None
        except TemplateError as exc:
            operation, error = "build_subscription", exc
        except GuideError as exc:
            operation, error = exc.operation, exc
        except SubmissionError as exc:
            operation, error = "create_subscription", exc

        logger.error(
            "[Channel %s] Failed to schedule %s (%s) during %s: %s",
            channel_id,
            broadcast.show_title,
            broadcast.guid,
            operation,
            error,
        )
        return CycleFailure(
            guid=broadcast.guid,
            channel=channel_id,
            operation=operation,
            error=str(error),
        )

    async def run_cycle(self, now: datetime | None = None) -> CycleResult:
        """
        Run one scan, select and schedule pass.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            CycleResult describing what was scheduled and when to wake next
        """
        now = now or utc_now()

        try:
            channels = filter_channels(await self.client.list_channels(), self.channels)
            candidates = await scan(self.client, channels, now)
        except GuideError as exc:
            logger.error("Guide scan failed during %s: %s", exc.operation, exc)
            return CycleResult(
                started_at=now,
                wake_at=now + self.error_retry,
                status="failed",
                error=str(exc),
            )

        decision = select(candidates, now)
        result = CycleResult(
            started_at=now,
            next_wake=decision.next_wake,
            wake_at=max(now, decision.next_wake - timedelta(seconds=PRE_SCHEDULE_TIME)),
            channels_scanned=len(channels),
            candidates=sum(1 for c in candidates.values() if c is not None),
        )

        failures = await asyncio.gather(
            *(
                self._schedule_isolated(channel_id, broadcast)
                for channel_id, broadcast in zip(decision.due_channels, decision.due)
            )
        )

        for broadcast, failure in zip(decision.due, failures):
            if failure is None:
                result.scheduled.append(broadcast.guid)
            else:
                result.failures.append(failure)

        if result.failures:
            result.status = "partial"
        return result
