"""
Subscription Builder

Turns a due broadcast plus its server-provided template into a recording
request.
"""
import logging
from typing import Protocol

from app.exceptions import TemplateError
from app.schemas import Broadcast, Subscription, SubscriptionPrefs, SubscriptionTemplate
from app.services.fetch_types import LibraryIds, LibraryKind


logger = logging.getLogger(__name__)

FILM_TEMPLATE_TYPE = 1
START_OFFSET_MINUTES = 0
END_OFFSET_MINUTES = 4


class TemplateSource(Protocol):
    async def get_subscription_template(self, guid: str) -> list[SubscriptionTemplate]: ...


def library_kind(template_type: int) -> LibraryKind:
    """Template type 1 is filed as Film; every other code as TV"""
    return LibraryKind.FILM if template_type == FILM_TEMPLATE_TYPE else LibraryKind.TV


def assemble_subscription(
    broadcast: Broadcast,
    template: SubscriptionTemplate,
    libraries: LibraryIds,
) -> Subscription:
    """
    Build the subscription for one broadcast from an already fetched template.

    Raises:
        TemplateError: If the broadcast has no airing or a required setting
            is missing from the template
    """
    airing = broadcast.airing
    if airing is None:
        raise TemplateError("no media")

    target_library = libraries.for_kind(library_kind(template.type))

    prefs = SubscriptionPrefs(
        min_video_quality=template.setting_default("minVideoQuality"),
        replace_lower_quality=template.setting_default("replaceLowerQuality"),
        record_partials=template.setting_default("recordPartials"),
        start_offset_minutes=START_OFFSET_MINUTES,
        end_offset_minutes=END_OFFSET_MINUTES,
        lineup_channel=airing.channel_identifier,
        start_timeslot=airing.begins_at,
        comskip_enabled=template.setting_default("comskipEnabled"),
        comskip_method=template.setting_default("comskipMethod"),
        one_shot=template.setting_default("oneShot"),
        remote_media=template.setting_default("remoteMedia"),
    )

    return Subscription(
        prefs=prefs,
        hints=dict(template.parameters.hints),
        params=dict(template.parameters.params),
        target_library_section_id=target_library,
        target_library_location_id=target_library,
        include_grabs=1,
    )


async def build(
    client: TemplateSource,
    broadcast: Broadcast,
    libraries: LibraryIds,
) -> Subscription:
    """
    Fetch the template for a broadcast and assemble its subscription.

    Raises:
        TemplateError: no media, no template media, or a missing setting
        GuideError: If the template can't be fetched
    """
    templates = await client.get_subscription_template(broadcast.guid)

    if broadcast.airing is None:
        raise TemplateError("no media")
    if not templates:
        raise TemplateError("no template media")

    subscription = assemble_subscription(broadcast, templates[0], libraries)
    logger.debug("Built subscription for %s: %s", broadcast.guid, subscription)
    return subscription
