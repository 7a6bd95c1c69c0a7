"""
Wire models for the media server API.

Inbound containers mirror the JSON the server returns; ``Subscription`` is the
outbound recording request.
"""
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.exceptions import TemplateError
from app.utils.query_string import encode_nested


class PlexModel(BaseModel):
    """Base for server payloads: camelCase keys, unknown keys ignored"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class MediaType(str, Enum):
    """Content category shared by grid entries and library directories"""
    MOVIE = "movie"
    SHOW = "show"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER


# Channels

class Channel(PlexModel):
    id: str


class ChannelContainer(PlexModel):
    channels: list[Channel] = Field(default_factory=list, alias="Channel")


class ChannelResponse(PlexModel):
    media_container: ChannelContainer = Field(..., alias="MediaContainer")


# Grid

class Airing(PlexModel):
    """One airing of a broadcast on a channel"""
    id: int | None = None
    begins_at: int
    ends_at: int
    channel_identifier: str
    channel_title: str = ""


class Broadcast(PlexModel):
    """A single grid entry"""
    model_config = ConfigDict(frozen=True)

    rating_key: str | None = None
    guid: str
    title: str
    type: MediaType = MediaType.OTHER
    grandparent_guid: str | None = None
    grandparent_title: str | None = None
    parent_guid: str | None = None
    parent_title: str | None = None
    parent_index: int | None = None
    index: int | None = None
    duration: int | None = None
    on_air: bool | None = None
    subscription_id: str | None = Field(None, alias="subscriptionID")
    subscription_type: str | None = None
    grandparent_subscription_id: str | None = Field(None, alias="grandparentSubscriptionID")
    grandparent_subscription_type: str | None = None
    originally_available_at: str | None = None
    media: list[Airing] = Field(default_factory=list, alias="Media")

    @property
    def airing(self) -> Airing | None:
        """The airing used as this broadcast's effective start/end"""
        return self.media[0] if self.media else None

    @property
    def begins_at_ts(self) -> int:
        return self.airing.begins_at if self.airing else 0

    @property
    def begins_at(self) -> datetime | None:
        if not self.airing:
            return None
        return datetime.fromtimestamp(self.airing.begins_at, tz=timezone.utc)

    @property
    def is_subscribed(self) -> bool:
        """Already scheduled at episode or series level"""
        return self.subscription_id is not None or self.grandparent_subscription_id is not None

    @property
    def show_title(self) -> str:
        return self.grandparent_title or self.title


class GridContainer(PlexModel):
    metadata: list[Broadcast] | None = Field(None, alias="Metadata")


class GridResponse(PlexModel):
    media_container: GridContainer = Field(..., alias="MediaContainer")


# Providers

class LibraryDirectory(PlexModel):
    type: MediaType | None = None
    id: str | None = None
    title: str | None = None


class ProviderFeature(PlexModel):
    key: str | None = None
    type: str
    directories: list[LibraryDirectory] | None = Field(None, alias="Directory")


class MediaProvider(PlexModel):
    identifier: str
    title: str | None = None
    features: list[ProviderFeature] = Field(default_factory=list, alias="Feature")


class ProvidersContainer(PlexModel):
    media_providers: list[MediaProvider] = Field(default_factory=list, alias="MediaProvider")


class ProvidersResponse(PlexModel):
    media_container: ProvidersContainer = Field(..., alias="MediaContainer")


# Subscription templates

class TemplateSetting(PlexModel):
    id: str
    default: str


class RawMediaSubscription(PlexModel):
    """Template entry as served, with ``parameters`` still query-encoded"""
    parameters: str
    type: int
    target_section_location_id: int | None = Field(None, alias="targetSectionLocationID")
    settings: list[TemplateSetting] = Field(default_factory=list, alias="Setting")


class RawSubscriptionTemplate(PlexModel):
    media_subscriptions: list[RawMediaSubscription] = Field(
        default_factory=list, alias="MediaSubscription"
    )


class TemplateContainer(PlexModel):
    subscription_templates: list[RawSubscriptionTemplate] = Field(
        default_factory=list, alias="SubscriptionTemplate"
    )


class TemplateResponse(PlexModel):
    media_container: TemplateContainer = Field(..., alias="MediaContainer")


class TemplateParameters(BaseModel):
    """Opaque blocks copied verbatim into the subscription"""
    hints: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)


class SubscriptionTemplate(BaseModel):
    parameters: TemplateParameters
    type: int
    target_section_location_id: int | None = None
    settings: list[TemplateSetting] = Field(default_factory=list)

    def setting_default(self, setting_id: str) -> str:
        for setting in self.settings:
            if setting.id == setting_id:
                return setting.default
        raise TemplateError(f"setting {setting_id} not found")


# Outbound subscription

class SubscriptionPrefs(PlexModel):
    min_video_quality: str
    replace_lower_quality: str
    record_partials: str
    start_offset_minutes: int = 0
    end_offset_minutes: int = 4
    lineup_channel: str
    start_timeslot: int
    comskip_enabled: str
    comskip_method: str
    one_shot: str
    remote_media: str


class Subscription(PlexModel):
    prefs: SubscriptionPrefs
    hints: dict[str, str]
    params: dict[str, str]
    target_library_section_id: str = Field(..., alias="targetLibrarySectionID")
    target_library_location_id: str = Field(..., alias="targetLibraryLocationID")
    include_grabs: int = 1

    def to_query(self) -> str:
        """Encode as the bracketed query string the server expects"""
        return encode_nested(self.model_dump(by_alias=True, exclude_none=True))
