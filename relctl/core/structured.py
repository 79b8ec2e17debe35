"""Narrowing helpers for untyped TOML/JSON payloads.

Config files and `gh --json` output arrive as plain objects; these helpers
validate shapes at the boundary.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Return a stripped, non-empty string value or None."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    if not isinstance(value, bool):
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_tables(table: Mapping[str, object], key: str) -> list[StrDict] | None:
    """Return an array of tables (``[[key]]`` in TOML), or None if malformed."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    out: list[StrDict] = []
    for item in items:
        d = as_str_dict(item)
        if d is None:
            return None
        out.append(d)
    return out
