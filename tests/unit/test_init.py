r"""Unit tests for package initialization and metadata."""

from __future__ import annotations

import pytest

import wscall


def test_package_version_is_string() -> None:
    assert isinstance(wscall.__version__, str)
    assert "." in wscall.__version__


def test_all_exports_defined() -> None:
    """Test that all items in __all__ are defined in the module."""
    for name in wscall.__all__:
        assert hasattr(wscall, name), f"{name} is in __all__ but not defined in module"


def test_all_exports_count() -> None:
    # 22 public names + version
    assert len(wscall.__all__) == 23


@pytest.mark.parametrize(
    "name",
    ["AdaptationError", "ApplicationError", "ParsingError", "ShapeError", "TransportError"],
)
def test_errors_share_base_class(name: str) -> None:
    assert issubclass(getattr(wscall, name), wscall.WSError)
