"""Tests for time bound parsing."""

import pytest

from strava_routes.errors import InvalidTimeBoundError
from strava_routes.time_utils import parse_time_bound, validate_window


class TestParseTimeBound:
    """Test parse_time_bound."""

    def test_missing_value_is_unbounded(self):
        """Test that None and blank values mean no bound."""
        assert parse_time_bound(None, "after") is None
        assert parse_time_bound("", "before") is None
        assert parse_time_bound("   ", "after") is None

    def test_epoch_seconds(self):
        """Test that integers pass through unchanged."""
        assert parse_time_bound("1714521600", "after") == 1714521600
        assert parse_time_bound(" 1714607999 ", "before") == 1714607999

    def test_date_after_starts_at_midnight(self):
        """Test that a lower date bound starts the day."""
        assert parse_time_bound("2024-05-01", "after") == 1714521600

    def test_date_before_ends_the_day(self):
        """Test that an upper date bound includes the whole day."""
        assert parse_time_bound("2024-05-01", "before") == 1714607999

    def test_invalid_format(self):
        """Test that free text is rejected."""
        with pytest.raises(InvalidTimeBoundError, match="Invalid after value"):
            parse_time_bound("last week", "after")

    def test_invalid_calendar_date(self):
        """Test that impossible dates are rejected."""
        with pytest.raises(InvalidTimeBoundError, match="Invalid before date"):
            parse_time_bound("2024-02-30", "before")

    def test_oversized_integer_is_rejected(self):
        """Test that a number too long to convert is a parse error."""
        with pytest.raises(InvalidTimeBoundError, match="too many digits"):
            parse_time_bound("9" * 5000, "after")

    def test_float_is_rejected(self):
        """Test that fractional seconds are not accepted."""
        with pytest.raises(InvalidTimeBoundError):
            parse_time_bound("1714521600.5", "after")


class TestValidateWindow:
    """Test validate_window."""

    def test_open_windows(self):
        """Test that one-sided and unbounded windows are fine."""
        validate_window(None, None)
        validate_window(1, None)
        validate_window(None, 1)

    def test_ordered_window(self):
        """Test that equal bounds are allowed."""
        validate_window(100, 100)

    def test_reversed_window(self):
        """Test that after > before is rejected."""
        with pytest.raises(InvalidTimeBoundError, match="must not be later"):
            validate_window(200, 100)
