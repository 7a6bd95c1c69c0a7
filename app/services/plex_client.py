"""
Plex Guide Client

Stateless accessor for the media server's channel list, guide grid, library
providers and subscription endpoints. Every outbound call shares one
semaphore so a scan fanning out across many channels never has more than
``max_concurrency`` requests in flight.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, TypeVar

import httpx
from lxml import etree  # type: ignore
from pydantic import BaseModel, ValidationError

from app.config import DVRSettings
from app.exceptions import ConfigError, GuideError, SubmissionError
from app.schemas import (
    Broadcast,
    Channel,
    ChannelResponse,
    GridResponse,
    LibraryDirectory,
    ProvidersResponse,
    Subscription,
    SubscriptionTemplate,
    TemplateParameters,
    TemplateResponse,
)
from app.utils.query_string import decode_template_parameters


logger = logging.getLogger(__name__)

LIBRARY_PROVIDER = "com.plexapp.plugins.library"

PROVIDERS_RESOURCE = "media/providers"
CHANNELS_RESOURCE = "tv.plex.providers.epg.xmltv:2/lineups/dvr/channels"
GRID_RESOURCE = "tv.plex.providers.epg.xmltv:2/grid"
TEMPLATE_RESOURCE = "media/subscriptions/template"
SUBSCRIPTIONS_RESOURCE = "media/subscriptions"

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_token(prefs_path: str | Path) -> str:
    """
    Read the server's online token from its Preferences.xml

    Args:
        prefs_path: Path to Preferences.xml

    Returns:
        The PlexOnlineToken attribute of the root element

    Raises:
        ConfigError: If the file can't be read or has no token
    """
    try:
        root = etree.parse(str(prefs_path)).getroot()
    except (OSError, etree.XMLSyntaxError) as exc:
        raise ConfigError(f"Cannot read Plex preferences '{prefs_path}': {exc}") from exc

    token = root.get("PlexOnlineToken")
    if not token:
        raise ConfigError(f"No PlexOnlineToken in '{prefs_path}'")
    return token


class PlexClient:
    """Async client for the media server API with a shared request limit."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        max_concurrency: int = 5,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._in_flight = 0
        self._client = httpx.AsyncClient(
            params={"X-Plex-Token": token},
            headers={"accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, config: DVRSettings) -> PlexClient:
        token = config.plex_token or load_token(config.plex_prefs_path)
        return cls(
            config.base_url,
            token,
            max_concurrency=config.request_concurrency,
            timeout=config.request_timeout_sec,
        )

    @property
    def in_flight(self) -> int:
        """Number of requests currently holding a limiter slot"""
        return self._in_flight

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PlexClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        resource: str,
        params: Any = None,
    ) -> httpx.Response:
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await self._client.request(
                    method, f"{self.base_url}/{resource}", params=params
                )
            finally:
                self._in_flight -= 1

    async def _get_model(
        self,
        operation: str,
        resource: str,
        model: type[ModelT],
        params: dict[str, str] | None = None,
    ) -> ModelT:
        try:
            response = await self._send("GET", resource, params)
            response.raise_for_status()
            return model.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            raise GuideError(
                operation, f"HTTP {exc.response.status_code} from {resource}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GuideError(operation, f"{type(exc).__name__}: {exc}") from exc
        except ValidationError as exc:
            raise GuideError(operation, f"unexpected response shape: {exc}") from exc
        except ValueError as exc:
            raise GuideError(operation, f"invalid JSON: {exc}") from exc

    async def list_library_directories(self) -> list[LibraryDirectory]:
        """Directories of the library provider, in listing order"""
        response = await self._get_model(
            "list_library_directories", PROVIDERS_RESOURCE, ProvidersResponse
        )
        provider = next(
            (
                p for p in response.media_container.media_providers
                if p.identifier == LIBRARY_PROVIDER
            ),
            None,
        )
        if provider is None:
            raise GuideError("list_library_directories", "Plex is missing its library")
        if not provider.features:
            raise GuideError("list_library_directories", "Plex library has no features")
        directories = provider.features[0].directories
        if directories is None:
            raise GuideError("list_library_directories", "Plex library has no dirs")
        return directories

    async def list_channels(self) -> list[Channel]:
        response = await self._get_model("list_channels", CHANNELS_RESOURCE, ChannelResponse)
        return response.media_container.channels

    async def get_grid(self, channel_id: str, date: str) -> list[Broadcast] | None:
        """Grid entries for one channel and date; None when the server lists nothing"""
        response = await self._get_model(
            f"get_grid[{channel_id} {date}]",
            GRID_RESOURCE,
            GridResponse,
            params={"channelGridKey": channel_id, "date": date},
        )
        return response.media_container.metadata

    async def get_subscription_template(self, guid: str) -> list[SubscriptionTemplate]:
        operation = f"get_subscription_template[{guid}]"
        response = await self._get_model(
            operation, TEMPLATE_RESOURCE, TemplateResponse, params={"guid": guid}
        )

        templates = response.media_container.subscription_templates
        if not templates:
            raise GuideError(operation, "Expected single SubscriptionTemplate body")

        result = []
        for raw in templates[0].media_subscriptions:
            try:
                parameters = TemplateParameters.model_validate(
                    decode_template_parameters(raw.parameters)
                )
            except ValueError as exc:
                raise GuideError(operation, f"Couldn't decode parameters: {exc}") from exc
            result.append(
                SubscriptionTemplate(
                    parameters=parameters,
                    type=raw.type,
                    target_section_location_id=raw.target_section_location_id,
                    settings=raw.settings,
                )
            )

        logger.debug("Template for %s: %s", guid, result)
        return result

    async def create_subscription(self, subscription: Subscription) -> None:
        guid = subscription.hints.get("guid", "?")
        try:
            response = await self._send(
                "POST", SUBSCRIPTIONS_RESOURCE, subscription.to_query()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SubmissionError(
                f"Subscription for {guid} rejected: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SubmissionError(
                f"Subscription for {guid} failed: {type(exc).__name__}: {exc}"
            ) from exc
