"""Tests for the encoded polyline decoder."""

import pytest

from strava_routes.errors import MalformedPathError
from strava_routes.polyline import Coordinate, decode_polyline
from tests.fixtures.activity_fixtures import REFERENCE_COORDINATES, REFERENCE_POLYLINE


class TestDecodePolyline:
    """Test decode_polyline."""

    def test_decodes_reference_polyline(self):
        """Test decoding Google's documented example."""
        coordinates = decode_polyline(REFERENCE_POLYLINE)

        assert len(coordinates) == len(REFERENCE_COORDINATES)
        for decoded, (lat, lng) in zip(coordinates, REFERENCE_COORDINATES, strict=True):
            assert decoded.latitude == pytest.approx(lat, abs=1e-5)
            assert decoded.longitude == pytest.approx(lng, abs=1e-5)

    def test_returns_coordinate_tuples(self):
        """Test that points unpack as (latitude, longitude)."""
        lat, lng = decode_polyline("_p~iF~ps|U")[0]

        assert isinstance(decode_polyline("_p~iF~ps|U")[0], Coordinate)
        assert (lat, lng) == pytest.approx((38.5, -120.2))

    def test_decoding_is_deterministic(self):
        """Test that decoding the same string twice yields identical results."""
        assert decode_polyline(REFERENCE_POLYLINE) == decode_polyline(REFERENCE_POLYLINE)

    def test_empty_string(self):
        """Test that an empty polyline has no points."""
        assert decode_polyline("") == []

    def test_zero_point(self):
        """Test the smallest chunk: '?' encodes a zero delta."""
        assert decode_polyline("??") == [Coordinate(0.0, 0.0)]

    def test_custom_precision(self):
        """Test that precision only changes the divisor."""
        coordinates = decode_polyline("_p~iF~ps|U", precision=6)

        assert coordinates[0].latitude == pytest.approx(3.85)
        assert coordinates[0].longitude == pytest.approx(-12.02)

    def test_accumulates_deltas(self):
        """Test that later points are relative to earlier ones."""
        coordinates = decode_polyline(REFERENCE_POLYLINE)

        assert coordinates[1].latitude > coordinates[0].latitude
        assert coordinates[2].longitude < coordinates[1].longitude


class TestMalformedPolyline:
    """Test handling of malformed input."""

    def test_truncated_chunk(self):
        """Test a string ending while the continuation bit is set."""
        with pytest.raises(MalformedPathError, match="Truncated"):
            decode_polyline("_p~iF~ps|")

    def test_latitude_without_longitude(self):
        """Test an odd number of chunks."""
        with pytest.raises(MalformedPathError, match="without longitude"):
            decode_polyline("_p~iF~ps|U_ulL")

    def test_invalid_character(self):
        """Test a character below the encoding alphabet."""
        with pytest.raises(MalformedPathError, match="Invalid polyline character") as exc_info:
            decode_polyline("_p~iF ps|U")

        assert exc_info.value.position == 5

    def test_character_above_alphabet(self):
        """Test a character beyond '~'."""
        with pytest.raises(MalformedPathError):
            decode_polyline("_p~iFéps|U")

    def test_is_value_error(self):
        """Test that MalformedPathError can be handled as a ValueError."""
        with pytest.raises(ValueError):
            decode_polyline("_")
