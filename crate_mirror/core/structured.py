"""Narrowing helpers for untyped JSON and TOML payloads.

The registry response and the optional config file both arrive as plain
`object`; these helpers validate shape at the boundary.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """True for a dict whose keys are all strings."""
    return isinstance(obj, dict) and all(
        isinstance(key, str) for key in cast(dict[object, object], obj)
    )


def as_str_dict(obj: object) -> StrDict | None:
    return obj if is_str_dict(obj) else None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Look up a non-blank string, stripped.

    Missing keys, non-string values and whitespace-only strings all give None.
    """
    match table.get(key):
        case str(value) if value.strip():
            return value.strip()
        case _:
            return None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Look up a nested table such as `[package]` in a TOML document."""
    return as_str_dict(table.get(key))
