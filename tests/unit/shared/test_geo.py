"""
Tests for geohash encoding and great-circle distance
"""

import numpy as np
import pytest

from regionpipe.shared.geo import (
    BASE32,
    EARTH_RADIUS_MILES,
    bounds,
    distance_miles,
    distances_miles,
    encode,
    is_valid,
)

# ─── Geohash ──────────────────────────────────────────────────────────────────


class TestEncode:
    def test_known_vector(self):
        assert encode(57.64911, 10.40744, 4) == "u4pr"

    def test_new_york(self):
        assert encode(40.7128, -74.006, 4) == "dr5r"

    def test_origin_goes_to_upper_halves(self):
        assert encode(0.0, 0.0, 4) == "s000"

    @pytest.mark.parametrize(
        "lat,lon,expected",
        [(90.0, 180.0, "zzzz"), (-90.0, -180.0, "0000")],
    )
    def test_extreme_corners(self, lat, lon, expected):
        assert encode(lat, lon, 4) == expected

    @pytest.mark.parametrize("lat,lon", [(90, -180), (-90, 180), (0, 180), (12.5, -0.0001)])
    def test_always_four_alphabet_characters(self, lat, lon):
        cell = encode(lat, lon, 4)
        assert len(cell) == 4
        assert all(ch in BASE32 for ch in cell)

    def test_precision_controls_length(self):
        assert encode(35.0, -79.0, 7).startswith(encode(35.0, -79.0, 4))
        assert len(encode(35.0, -79.0, 1)) == 1

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            encode(91.0, 0.0)
        with pytest.raises(ValueError):
            encode(0.0, -180.5)

    def test_rejects_zero_precision(self):
        with pytest.raises(ValueError):
            encode(0.0, 0.0, 0)


class TestBounds:
    def test_dnxx_box(self):
        box = bounds("dnxx")
        assert box.min_lat == pytest.approx(36.38671875)
        assert box.max_lat == pytest.approx(36.5625)
        assert box.min_lon == pytest.approx(-79.453125)
        assert box.max_lon == pytest.approx(-79.1015625)

    def test_center_encodes_back_to_cell(self):
        lat, lon = bounds("dr5r").center
        assert encode(lat, lon, 4) == "dr5r"

    def test_contains_is_half_open(self):
        box = bounds("dnxx")
        assert box.contains(box.min_lat, box.min_lon)
        assert not box.contains(box.max_lat, box.min_lon)

    def test_rejects_invalid_characters(self):
        with pytest.raises(ValueError):
            bounds("dnxa")
        with pytest.raises(ValueError):
            bounds("")


class TestIsValid:
    def test_valid_cells(self):
        assert is_valid("dnxx")
        assert is_valid("dnxx", precision=4)

    def test_wrong_length_or_alphabet(self):
        assert not is_valid("dnx", precision=4)
        assert not is_valid("DNXX")
        assert not is_valid("")


# ─── Distance ─────────────────────────────────────────────────────────────────


class TestDistance:
    def test_same_point_is_zero(self):
        assert distance_miles(35.0, -79.0, 35.0, -79.0) == 0.0

    def test_symmetric(self):
        a = distance_miles(35.0, -79.0, 40.7128, -74.006)
        b = distance_miles(40.7128, -74.006, 35.0, -79.0)
        assert a == pytest.approx(b)

    def test_one_degree_of_latitude(self):
        expected = 2 * np.pi * EARTH_RADIUS_MILES / 360
        assert distance_miles(35.0, -79.0, 36.0, -79.0) == pytest.approx(expected)

    def test_new_york_to_los_angeles(self):
        assert distance_miles(40.7128, -74.006, 34.0522, -118.2437) == pytest.approx(
            2445, abs=10
        )

    def test_antipodal_points_do_not_fail(self):
        assert distance_miles(0.0, 0.0, 0.0, 180.0) == pytest.approx(np.pi * EARTH_RADIUS_MILES)

    def test_vectorized_matches_scalar(self):
        lats = [35.0, 40.7128, 34.0522]
        lons = [-79.0, -74.006, -118.2437]
        result = distances_miles(36.0, -80.0, lats, lons)
        assert result.shape == (3,)
        for got, lat, lon in zip(result, lats, lons):
            assert got == pytest.approx(distance_miles(36.0, -80.0, lat, lon))
