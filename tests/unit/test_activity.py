r"""Unit tests for the network activity indicator."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from wscall import NetworkActivityIndicator


def test_indicator_is_inactive_by_default() -> None:
    assert not NetworkActivityIndicator().active


def test_indicator_notifies_only_on_state_change() -> None:
    """Test that listeners are notified when the indicator turns on or off only."""
    indicator = NetworkActivityIndicator()
    listener = Mock()
    indicator.add_listener(listener)
    indicator.increment()
    indicator.increment()
    assert indicator.active
    indicator.decrement()
    assert indicator.active
    indicator.decrement()
    assert not indicator.active
    assert [c.args for c in listener.call_args_list] == [(True,), (False,)]


def test_indicator_decrement_below_zero_is_ignored() -> None:
    """Test that an extra decrement does not make the counter negative."""
    indicator = NetworkActivityIndicator()
    listener = Mock()
    indicator.add_listener(listener)
    indicator.decrement()
    assert not indicator.active
    listener.assert_not_called()


def test_indicator_exchange_resets_on_error() -> None:
    """Test that exchange decrements the counter when the block raises."""
    indicator = NetworkActivityIndicator()
    with pytest.raises(RuntimeError, match=r"boom"), indicator.exchange():
        assert indicator.active
        msg = "boom"
        raise RuntimeError(msg)
    assert not indicator.active


def test_indicator_failing_listener_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a failing listener is logged and does not raise."""
    indicator = NetworkActivityIndicator()
    indicator.add_listener(Mock(side_effect=ValueError("listener bug")))
    other = Mock()
    indicator.add_listener(other)
    with indicator.exchange():
        pass
    assert "Network activity listener failed" in caplog.text
    assert other.call_count == 2


def test_indicator_remove_listener() -> None:
    indicator = NetworkActivityIndicator()
    listener = Mock()
    indicator.add_listener(listener)
    indicator.remove_listener(listener)
    with indicator.exchange():
        pass
    listener.assert_not_called()
