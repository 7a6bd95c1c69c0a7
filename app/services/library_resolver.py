"""
Library Resolver

Maps configured (or default) library ids to the TV and Film libraries used as
subscription targets. Runs once per process.
"""
import logging
from collections.abc import Sequence
from typing import Protocol

from app.exceptions import ConfigError
from app.schemas import LibraryDirectory, MediaType
from app.services.fetch_types import LibraryIds


logger = logging.getLogger(__name__)


class DirectorySource(Protocol):
    async def list_library_directories(self) -> list[LibraryDirectory]: ...


def pick_library_id(
    directories: Sequence[LibraryDirectory],
    category: MediaType,
    default: str | None = None,
) -> str | None:
    """
    Choose a library id for one content category.

    Args:
        directories: Library directories in listing order
        category: Content category to match
        default: Preferred id, used only if it belongs to the category

    Returns:
        The preferred id if present, else the first id of the category,
        else None
    """
    ids = [d.id for d in directories if d.type == category and d.id is not None]
    if default is not None and default in ids:
        return default
    if default is not None:
        logger.warning(
            "Configured %s library %s not found, falling back to first match",
            category.value,
            default,
        )
    return ids[0] if ids else None


async def resolve_libraries(
    client: DirectorySource,
    tv_default: str | None = None,
    film_default: str | None = None,
) -> LibraryIds:
    """
    Resolve the TV and Film library ids.

    Raises:
        ConfigError: If the server has no library of either category
        GuideError: If the provider listing can't be fetched
    """
    directories = await client.list_library_directories()

    tv_id = pick_library_id(directories, MediaType.SHOW, tv_default)
    if tv_id is None:
        raise ConfigError("no matching TV Show library")

    film_id = pick_library_id(directories, MediaType.MOVIE, film_default)
    if film_id is None:
        raise ConfigError("no matching Film library")

    logger.info("Using tv library %s, film library %s", tv_id, film_id)
    return LibraryIds(tv=tv_id, film=film_id)
