"""
Nested query string utilities

The media server encodes subscription templates and accepts new subscriptions
as flat query strings with bracketed keys, e.g. ``hints[guid]=x&params[libraryType]=2``.
"""
from collections.abc import Mapping
from urllib.parse import parse_qsl, unquote, urlencode


def decode_nested(query: str) -> dict[str, dict[str, str] | str]:
    """
    Parse a bracketed query string into one level of nested dictionaries.

    Args:
        query: Query string such as ``hints[guid]=abc&includeGrabs=1``

    Returns:
        Dictionary with plain keys mapped to strings and bracketed keys
        grouped under their prefix

    Raises:
        ValueError: If a key is malformed or used both plain and nested
    """
    result: dict[str, dict[str, str] | str] = {}

    for key, value in parse_qsl(query, keep_blank_values=True):
        if "[" not in key:
            if isinstance(result.get(key), dict):
                raise ValueError(f"Key '{key}' used both plain and nested")
            result[key] = value
            continue

        if not key.endswith("]"):
            raise ValueError(f"Malformed nested key: '{key}'")

        prefix, _, inner = key[:-1].partition("[")
        if not prefix or not inner or "[" in inner:
            raise ValueError(f"Malformed nested key: '{key}'")

        group = result.setdefault(prefix, {})
        if not isinstance(group, dict):
            raise ValueError(f"Key '{prefix}' used both plain and nested")
        group[inner] = value

    return result


def decode_template_parameters(raw: str) -> dict[str, dict[str, str] | str]:
    """Decode a template ``parameters`` value, which arrives percent-encoded once more."""
    return decode_nested(unquote(raw))


def encode_nested(payload: Mapping[str, object]) -> str:
    """
    Encode a mapping as a bracketed query string.

    Nested mappings become ``prefix[key]=value`` pairs. ``None`` values are
    skipped at both levels.
    """
    pairs: list[tuple[str, str]] = []

    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            for inner_key, inner_value in value.items():
                if inner_value is None:
                    continue
                pairs.append((f"{key}[{inner_key}]", _to_str(inner_value)))
        else:
            pairs.append((key, _to_str(value)))

    return urlencode(pairs)


def _to_str(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
