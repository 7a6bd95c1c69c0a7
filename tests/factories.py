"""
Builders for guide payloads and a fake guide client used across tests.
"""
from datetime import datetime, timezone

from app.exceptions import GuideError, SubmissionError
from app.schemas import (
    Broadcast,
    Channel,
    LibraryDirectory,
    Subscription,
    SubscriptionTemplate,
    TemplateParameters,
    TemplateSetting,
)


NOW = datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)
NOW_TS = int(NOW.timestamp())

YESTERDAY, TODAY, TOMORROW = "2026-10-16", "2026-10-17", "2026-10-18"

REQUIRED_SETTINGS = {
    "minVideoQuality": "0",
    "replaceLowerQuality": "false",
    "recordPartials": "true",
    "comskipEnabled": "-1",
    "comskipMethod": "2",
    "oneShot": "true",
    "remoteMedia": "false",
}


def make_broadcast(
    guid: str = "plex://episode/1",
    begins_at: int = NOW_TS + 600,
    channel: str = "ch1",
    title: str = "Episode",
    grandparent_title: str | None = None,
    subscription_id: str | None = None,
    grandparent_subscription_id: str | None = None,
    media_type: str = "show",
    with_media: bool = True,
) -> Broadcast:
    data = {
        "ratingKey": "100",
        "guid": guid,
        "title": title,
        "type": media_type,
        "duration": 1800000,
    }
    if grandparent_title is not None:
        data["grandparentTitle"] = grandparent_title
    if subscription_id is not None:
        data["subscriptionID"] = subscription_id
    if grandparent_subscription_id is not None:
        data["grandparentSubscriptionID"] = grandparent_subscription_id
    data["Media"] = [
        {
            "id": 1,
            "beginsAt": begins_at,
            "endsAt": begins_at + 1800,
            "channelIdentifier": channel,
            "channelTitle": channel.upper(),
        }
    ] if with_media else []
    return Broadcast.model_validate(data)


def make_template(
    template_type: int = 0,
    settings: dict[str, str] | None = None,
    guid: str = "plex://episode/1",
) -> SubscriptionTemplate:
    settings = REQUIRED_SETTINGS if settings is None else settings
    return SubscriptionTemplate(
        parameters=TemplateParameters(
            hints={"guid": guid, "title": "Episode", "type": "4", "ratingKey": "100"},
            params={
                "airingChannels": "ch1%3DCH1",
                "airingTimes": "1792238400",
                "libraryType": "2",
                "mediaProviderID": "7",
            },
        ),
        type=template_type,
        target_section_location_id=1,
        settings=[TemplateSetting(id=key, default=value) for key, value in settings.items()],
    )


def make_directory(media_type: str, directory_id: str | None) -> LibraryDirectory:
    return LibraryDirectory.model_validate({"type": media_type, "id": directory_id})


class FakeGuideClient:
    """In-memory stand-in for PlexClient"""

    def __init__(self, channels=(), grids=None, templates=None, directories=None):
        self.channels = [Channel(id=channel_id) for channel_id in channels]
        self.grids: dict[tuple[str, str], list[Broadcast] | None] = grids or {}
        self.templates: dict[str, list[SubscriptionTemplate]] = templates or {}
        self.directories: list[LibraryDirectory] = directories or []
        self.failing_grids: set[tuple[str, str]] = set()
        self.failing_channels = False
        self.rejected_guids: set[str] = set()
        self.grid_calls: list[tuple[str, str]] = []
        self.created: list[Subscription] = []

    async def list_library_directories(self) -> list[LibraryDirectory]:
        return list(self.directories)

    async def list_channels(self) -> list[Channel]:
        if self.failing_channels:
            raise GuideError("list_channels", "HTTP 500 from channels")
        return list(self.channels)

    async def get_grid(self, channel_id: str, date: str) -> list[Broadcast] | None:
        self.grid_calls.append((channel_id, date))
        if (channel_id, date) in self.failing_grids:
            raise GuideError(f"get_grid[{channel_id} {date}]", "HTTP 500 from grid")
        return self.grids.get((channel_id, date))

    async def get_subscription_template(self, guid: str) -> list[SubscriptionTemplate]:
        return self.templates.get(guid, [])

    async def create_subscription(self, subscription: Subscription) -> None:
        guid = subscription.hints.get("guid")
        if guid in self.rejected_guids:
            raise SubmissionError(f"Subscription for {guid} rejected: HTTP 400")
        self.created.append(subscription)
