"""
Subscription Builder tests: library mapping, required settings, fixed offsets.
"""
import pytest

from app.exceptions import BuildError, TemplateError
from app.services.fetch_types import LibraryKind
from app.services.subscription_builder import assemble_subscription, build, library_kind
from tests.factories import NOW_TS, REQUIRED_SETTINGS, make_broadcast, make_template


def test_library_kind_mapping():
    assert library_kind(1) is LibraryKind.FILM
    assert library_kind(0) is LibraryKind.TV
    assert library_kind(2) is LibraryKind.TV
    assert library_kind(4) is LibraryKind.TV


def test_film_template_targets_film_library(libraries):
    subscription = assemble_subscription(make_broadcast(), make_template(template_type=1), libraries)

    assert subscription.target_library_section_id == "1"
    assert subscription.target_library_location_id == "1"


@pytest.mark.parametrize("template_type", [0, 2, 18])
def test_other_templates_target_tv_library(libraries, template_type):
    subscription = assemble_subscription(
        make_broadcast(), make_template(template_type=template_type), libraries
    )

    assert subscription.target_library_section_id == "2"
    assert subscription.target_library_location_id == "2"


def test_prefs_combine_defaults_and_airing(libraries):
    broadcast = make_broadcast(begins_at=NOW_TS + 15, channel="5.1")

    subscription = assemble_subscription(broadcast, make_template(), libraries)
    prefs = subscription.prefs

    assert prefs.min_video_quality == "0"
    assert prefs.replace_lower_quality == "false"
    assert prefs.record_partials == "true"
    assert prefs.comskip_enabled == "-1"
    assert prefs.comskip_method == "2"
    assert prefs.one_shot == "true"
    assert prefs.remote_media == "false"
    assert prefs.start_offset_minutes == 0
    assert prefs.end_offset_minutes == 4
    assert prefs.lineup_channel == "5.1"
    assert prefs.start_timeslot == NOW_TS + 15
    assert subscription.include_grabs == 1


def test_hints_and_params_are_copied_verbatim(libraries):
    template = make_template()

    subscription = assemble_subscription(make_broadcast(), template, libraries)

    assert subscription.hints == template.parameters.hints
    assert subscription.params == template.parameters.params


@pytest.mark.parametrize("missing", sorted(REQUIRED_SETTINGS))
def test_missing_setting_is_named(libraries, missing):
    settings = {k: v for k, v in REQUIRED_SETTINGS.items() if k != missing}

    with pytest.raises(TemplateError, match=f"setting {missing} not found"):
        assemble_subscription(make_broadcast(), make_template(settings=settings), libraries)


@pytest.mark.asyncio
async def test_build_fails_without_template_media(guide, libraries):
    with pytest.raises(BuildError, match="no template media"):
        await build(guide, make_broadcast(), libraries)


@pytest.mark.asyncio
async def test_build_fails_without_airing(guide, libraries):
    broadcast = make_broadcast(with_media=False)
    guide.templates[broadcast.guid] = [make_template()]

    with pytest.raises(TemplateError, match="no media"):
        await build(guide, broadcast, libraries)


@pytest.mark.asyncio
async def test_build_uses_first_template(guide, libraries):
    broadcast = make_broadcast()
    guide.templates[broadcast.guid] = [make_template(template_type=1), make_template(template_type=0)]

    subscription = await build(guide, broadcast, libraries)

    assert subscription.target_library_section_id == "1"


def test_query_string_uses_bracketed_keys(libraries):
    query = assemble_subscription(make_broadcast(), make_template(), libraries).to_query()

    assert "prefs%5BendOffsetMinutes%5D=4" in query
    assert "prefs%5BminVideoQuality%5D=0" in query
    assert "hints%5Bguid%5D=plex%3A%2F%2Fepisode%2F1" in query
    assert "params%5BlibraryType%5D=2" in query
    assert "targetLibrarySectionID=2" in query
    assert "includeGrabs=1" in query
