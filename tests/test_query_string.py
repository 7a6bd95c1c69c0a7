"""
Nested query string decoding of template parameters.
"""
from urllib.parse import quote

import pytest

from app.utils.query_string import decode_nested, decode_template_parameters, encode_nested


def test_decode_groups_bracketed_keys():
    decoded = decode_nested("hints[guid]=plex%3A%2F%2Fshow%2F1&hints[title]=News&params[libraryType]=2&x=1")

    assert decoded == {
        "hints": {"guid": "plex://show/1", "title": "News"},
        "params": {"libraryType": "2"},
        "x": "1",
    }


def test_template_parameters_are_decoded_twice():
    inner = "hints[guid]=plex%3A%2F%2Fepisode%2F5&params[airingChannels]=5.1%3DBBC%20One"
    raw = quote(inner, safe="")

    decoded = decode_template_parameters(raw)

    assert decoded["hints"] == {"guid": "plex://episode/5"}
    assert decoded["params"] == {"airingChannels": "5.1=BBC One"}


def test_blank_values_are_kept():
    assert decode_nested("hints[index]=") == {"hints": {"index": ""}}


@pytest.mark.parametrize("query", ["hints[guid=1", "[guid]=1", "hints[a][b]=1", "hints=1&hints[a]=2"])
def test_malformed_keys_raise(query):
    with pytest.raises(ValueError):
        decode_nested(query)


def test_encode_skips_none():
    assert encode_nested({"a": None, "b": {"c": None, "d": 1}, "e": True}) == "b%5Bd%5D=1&e=1"
