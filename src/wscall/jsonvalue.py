r"""Immutable JSON value with safe, non-coercing accessors.

This module wraps the values decoded by the standard ``json`` module in a
``JSON`` object that knows its kind and never converts between kinds
implicitly.
"""

from __future__ import annotations

__all__ = ["JSON", "JSONKind", "parse_json"]

import copy
import json
import logging
from enum import Enum
from typing import Any

logger: logging.Logger = logging.getLogger(__name__)


class JSONKind(str, Enum):
    r"""The kind of value held by a ``JSON`` object."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    NULL = "null"


def _kind_of(value: Any) -> JSONKind:
    # bool must be checked before int because bool is a subclass of int
    if value is None:
        return JSONKind.NULL
    if isinstance(value, bool):
        return JSONKind.BOOL
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, list):
        return JSONKind.ARRAY
    if isinstance(value, dict):
        return JSONKind.OBJECT
    msg = f"unsupported JSON value of type {type(value).__qualname__}"
    raise TypeError(msg)


class JSON:
    r"""A decoded JSON value.

    Indexing never raises: a missing key, an out-of-range index or an
    index on the wrong kind returns a ``JSON`` holding ``null``. The
    ``as_*`` accessors return ``None`` when the kind does not match.

    Args:
        value: A value as produced by ``json.loads``.

    Example:
        ```pycon
        >>> from wscall import JSON
        >>> body = JSON({"data": {"users": [{"name": "ann"}]}})
        >>> body.at_path("data.users.0.name").as_str()
        'ann'
        >>> body["missing"].is_null
        True
        >>> JSON(True).as_int() is None
        True

        ```
    """

    __slots__ = ("_kind", "_value")

    def __init__(self, value: Any = None) -> None:
        if isinstance(value, JSON):
            value = value.raw
        self._kind = _kind_of(value)
        self._value = value

    @property
    def kind(self) -> JSONKind:
        return self._kind

    @property
    def raw(self) -> Any:
        r"""The underlying decoded Python value.

        It is shared with this object and must not be modified. Use
        ``as_dict`` or ``as_list`` to get a copy.
        """
        return self._value

    @property
    def is_null(self) -> bool:
        return self._kind is JSONKind.NULL

    def __getitem__(self, key: str | int) -> JSON:
        if isinstance(key, str) and self._kind is JSONKind.OBJECT:
            return JSON(self._value.get(key))
        if isinstance(key, int) and not isinstance(key, bool) and self._kind is JSONKind.ARRAY:
            if -len(self._value) <= key < len(self._value):
                return JSON(self._value[key])
        return JSON(None)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JSON):
            return self._kind is other._kind and self._value == other._value
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"JSON({self._value!r})"

    def __len__(self) -> int:
        if self._kind in (JSONKind.OBJECT, JSONKind.ARRAY):
            return len(self._value)
        return 0

    def at_path(self, key_path: str) -> JSON:
        r"""Return the value at a dot-separated key path.

        Numeric segments index arrays. An empty path returns the value
        itself.

        Args:
            key_path: The key path, e.g. ``"data.items"``.

        Returns:
            The value at the path, or a ``JSON`` holding ``null`` if the
            path does not exist.
        """
        current = self
        for segment in filter(None, key_path.split(".")):
            if current._kind is JSONKind.ARRAY and segment.lstrip("-").isdigit():
                current = current[int(segment)]
            else:
                current = current[segment]
        return current

    def as_dict(self) -> dict[str, Any] | None:
        r"""Return a copy of an object value, or ``None`` for any other
        kind."""
        return copy.deepcopy(self._value) if self._kind is JSONKind.OBJECT else None

    def as_list(self) -> list[Any] | None:
        r"""Return a copy of an array value, or ``None`` for any other
        kind."""
        return copy.deepcopy(self._value) if self._kind is JSONKind.ARRAY else None

    def as_str(self) -> str | None:
        return self._value if self._kind is JSONKind.STRING else None

    def as_bool(self) -> bool | None:
        return self._value if self._kind is JSONKind.BOOL else None

    def as_int(self) -> int | None:
        if self._kind is JSONKind.NUMBER and isinstance(self._value, int):
            return self._value
        return None

    def as_float(self) -> float | None:
        if self._kind is JSONKind.NUMBER:
            return float(self._value)
        return None

    def items(self) -> list[JSON]:
        r"""Return the elements of an array as ``JSON`` values, or an empty
        list for any other kind."""
        if self._kind is JSONKind.ARRAY:
            return [JSON(item) for item in self._value]
        return []


def parse_json(body: bytes | str) -> JSON:
    r"""Decode a response body into a ``JSON`` value.

    Args:
        body: The raw body.

    Returns:
        The decoded value.

    Raises:
        ValueError: If the body is not valid JSON or nests too deeply to
            be decoded.

    Example:
        ```pycon
        >>> from wscall.jsonvalue import parse_json
        >>> parse_json(b'{"id": 1}')["id"].as_int()
        1

        ```
    """
    try:
        return JSON(json.loads(body))
    except (ValueError, RecursionError) as exc:
        logger.debug(f"Failed to decode JSON body: {exc}")
        msg = f"invalid JSON body: {exc}"
        raise ValueError(msg) from exc
