r"""Ordered request parameters and multipart file parts."""

from __future__ import annotations

__all__ = ["MultipartFile", "Params"]

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class MultipartFile:
    r"""A binary part of a multipart request body.

    Args:
        name: The form field name of the part.
        data: The raw bytes of the part.
        filename: The file name sent with the part.
        mime_type: The MIME type of the part, e.g. ``"image/jpeg"``.
    """

    name: str
    data: bytes
    filename: str
    mime_type: str

    def as_httpx_file(self) -> tuple[str, bytes, str]:
        return (self.filename, self.data, self.mime_type)


class Params(Mapping[str, Any]):
    r"""Ordered mapping of request parameters.

    Keys are non-empty strings. Setting an existing key replaces the
    value and keeps the key at its original position. Values can be
    strings, numbers, booleans, ``None``, nested dicts and lists, or
    ``MultipartFile`` instances.

    Args:
        data: Optional initial parameters.
        **kwargs: Additional initial parameters.

    Example:
        ```pycon
        >>> from wscall import Params
        >>> params = Params({"page": 1}).set("q", "cats")
        >>> list(params)
        ['page', 'q']
        >>> params.to_query()
        [('page', '1'), ('q', 'cats')]

        ```
    """

    def __init__(self, data: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self._data: dict[str, Any] = {}
        for key, value in {**(data or {}), **kwargs}.items():
            self.set(key, value)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Params):
            return list(self._data.items()) == list(other._data.items())
        return super().__eq__(other)

    __hash__ = None  # type: ignore[assignment]

    def set(self, key: str, value: Any) -> Params:
        r"""Set a parameter value.

        Args:
            key: The parameter name. Must be a non-empty string.
            value: The parameter value.

        Returns:
            The params object, to allow chaining.

        Raises:
            ValueError: If the key is empty.
        """
        if not isinstance(key, str) or not key:
            msg = f"parameter key must be a non-empty string, got {key!r}"
            raise ValueError(msg)
        self._data[key] = value
        return self

    def merge(self, other: Mapping[str, Any]) -> Params:
        r"""Return new params where the keys of ``other`` override the
        keys of this object.

        Example:
            ```pycon
            >>> from wscall import Params
            >>> Params(a=1, b=2).merge({"b": 3, "c": 4})
            Params({'a': 1, 'b': 3, 'c': 4})

            ```
        """
        merged = self.copy()
        for key, value in other.items():
            merged.set(key, value)
        return merged

    def copy(self) -> Params:
        return Params(self._data)

    def files(self) -> list[MultipartFile]:
        r"""Return the multipart file parts stored in the params."""
        return [value for value in self._data.values() if isinstance(value, MultipartFile)]

    def to_dict(self) -> dict[str, Any]:
        r"""Return the params as a plain dict, without the file parts."""
        return {
            key: value for key, value in self._data.items() if not isinstance(value, MultipartFile)
        }

    def to_query(self) -> list[tuple[str, str]]:
        r"""Flatten the params into ordered ``(key, value)`` string pairs.

        Nested dicts become ``key[sub]``, lists become repeated
        ``key[]``, booleans become ``1``/``0`` and ``None`` becomes an
        empty string. File parts are skipped.

        Example:
            ```pycon
            >>> from wscall import Params
            >>> Params(user={"name": "ann", "tags": ["a", "b"]}, admin=True).to_query()
            [('user[name]', 'ann'), ('user[tags][]', 'a'), ('user[tags][]', 'b'), ('admin', '1')]

            ```
        """
        pairs: list[tuple[str, str]] = []
        for key, value in self._data.items():
            if isinstance(value, MultipartFile):
                continue
            pairs.extend(_flatten(key, value))
        return pairs

    def to_form(self) -> dict[str, str | list[str]]:
        r"""Return the flattened params in the shape ``httpx`` expects for
        a form body.

        Repeated keys are grouped into lists, preserving order.
        """
        form: dict[str, str | list[str]] = {}
        for key, value in self.to_query():
            if key in form:
                existing = form[key]
                if isinstance(existing, list):
                    existing.append(value)
                else:
                    form[key] = [existing, value]
            else:
                form[key] = value
        return form


def _flatten(key: str, value: Any) -> list[tuple[str, str]]:
    if isinstance(value, Mapping):
        pairs = []
        for sub_key, sub_value in value.items():
            pairs.extend(_flatten(f"{key}[{sub_key}]", sub_value))
        return pairs
    if isinstance(value, (list, tuple)):
        pairs = []
        for item in value:
            pairs.extend(_flatten(f"{key}[]", item))
        return pairs
    return [(key, _to_str(value))]


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)
